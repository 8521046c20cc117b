from __future__ import annotations

import json
from typing import Mapping

import yaml


def to_json(document: Mapping[str, object]) -> str:
    return json.dumps(document, indent=2)


def to_yaml(document: Mapping[str, object]) -> str:
    return yaml.safe_dump(dict(document), sort_keys=False, allow_unicode=True)


def load_json(text: str) -> object:
    return json.loads(text)


def load_yaml(text: str) -> object:
    return yaml.safe_load(text)
