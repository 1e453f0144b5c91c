"""Parsers for loosely typed configuration values.

CI plugins receive every setting as a string, so rule tables may arrive as a
JSON object, a bare scalar, or (from YAML) an already parsed mapping or list
of pairs. These helpers turn each form into a MatchRuleTable once, at load
time.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..exceptions import ValidationError
from ..resolve.pattern_matcher import MATCH_ALL, REGEX, MatchRuleTable


def parse_rule_table(value: Any, name: str, syntax: str = REGEX) -> MatchRuleTable[str]:
    """Parse a pattern -> string table.

    A string that is not a JSON object becomes a single rule under the
    match-all pattern of the given syntax (empty for regex, ``*`` for glob).
    """
    if value is None or value == "":
        return MatchRuleTable()
    if isinstance(value, str):
        decoded = _try_json(value)
        if not isinstance(decoded, (dict, list)):
            return MatchRuleTable.from_pairs([(MATCH_ALL[syntax], value)])
        value = decoded
    pairs = _to_pairs(value, name)
    for pattern, rule_value in pairs:
        if not isinstance(rule_value, str):
            raise ValidationError(f"{name} rule '{pattern}' must map to a string value.")
    return MatchRuleTable.from_pairs(pairs)


def parse_metadata_table(
    value: Any, name: str = "metadata", syntax: str = REGEX
) -> MatchRuleTable[Dict[str, str]]:
    """Parse a pattern -> {key: value} table.

    A single flat mapping of strings is treated as the value of the
    match-all pattern.
    """
    if value is None or value == "":
        return MatchRuleTable()
    if isinstance(value, str):
        decoded = _try_json(value)
        if decoded is None:
            raise ValidationError(f"{name} must be a JSON object.")
        value = decoded

    if isinstance(value, dict) and value and all(isinstance(v, str) for v in value.values()):
        return MatchRuleTable.from_pairs([(MATCH_ALL[syntax], dict(value))])

    pairs = _to_pairs(value, name)
    table = []
    for pattern, mapping in pairs:
        if not isinstance(mapping, dict):
            raise ValidationError(f"{name} rule '{pattern}' must map to an object.")
        table.append((pattern, {str(k): str(v) for k, v in mapping.items()}))
    return MatchRuleTable.from_pairs(table)


def parse_string_list(value: Any, name: str) -> List[str]:
    """Parse a list of strings from a list, a JSON array or a comma separated string."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        decoded = _try_json(value)
        if isinstance(decoded, list):
            value = decoded
        else:
            return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if not isinstance(item, str):
                raise ValidationError(f"{name} entries must be strings.")
            items.append(item)
        return items
    raise ValidationError(f"{name} must be a list of strings.")


def parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("", "0", "false", "no", "off"):
            return False
    raise ValidationError(f"{name} must be a boolean.")


def _to_pairs(value: Any, name: str) -> List[tuple]:
    if isinstance(value, dict):
        return [(str(pattern), rule_value) for pattern, rule_value in value.items()]
    if isinstance(value, list):
        pairs = []
        for index, entry in enumerate(value):
            if isinstance(entry, dict) and "pattern" in entry and "value" in entry:
                pairs.append((str(entry["pattern"]), entry["value"]))
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                pairs.append((str(entry[0]), entry[1]))
            else:
                raise ValidationError(
                    f"{name} entry at index {index} must be a [pattern, value] pair "
                    "or a mapping with 'pattern' and 'value'."
                )
        return pairs
    raise ValidationError(f"{name} must be a mapping of pattern to value.")


def _try_json(value: str) -> Optional[Any]:
    try:
        return json.loads(value)
    except ValueError:
        return None
