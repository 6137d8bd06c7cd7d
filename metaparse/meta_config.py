"""
YAML attribute set definitions.

An attribute set file names a vocabulary of attribute keywords and the
shape of each one::

    name: packet
    extends: field
    attributes:
      checksum: void
      version:
        shape: value
        payload: lit
      fields:
        shape: list
        item: expr
      options:
        shape: enclosed
        paren: expr
        brace: field_value

Shapes are ``void``, ``value``, ``list`` and ``enclosed``. ``extends`` starts
from a builtin set (``struct`` or ``field``) and adds or replaces keywords.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .meta_attrs import FIELD_ATTRS, STRUCT_ATTRS, AttrSet, FieldValue
from .meta_keywords import custom_keyword
from .meta_payloads import Expr, Ident, Lit, Type
from .meta_types import IdentPatType, IdentTypeMaybeDefault, MetaEnclosedList, MetaList, MetaValue, MetaVoid

logger = logging.getLogger(__name__)


BUILTIN_SETS: Dict[str, AttrSet] = {
    'struct': STRUCT_ATTRS,
    'field': FIELD_ATTRS,
}

PAYLOADS = {
    'lit': Lit,
    'expr': Expr,
    'type': Type,
    'ident': Ident,
    'ident_pat_type': IdentPatType,
    'ident_type_maybe_default': IdentTypeMaybeDefault,
    'field_value': FieldValue,
}

# Payload keys each shape requires
SHAPES = {
    'void': (),
    'value': ('payload',),
    'list': ('item',),
    'enclosed': ('paren', 'brace'),
}


class ConfigError(ValueError):
    """Raised when an attribute set definition is invalid."""

    def __init__(self, source: str, errors: List[str]):
        self.source = source
        self.errors = errors
        message = f"Invalid attribute set {source}:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


def _lookup(value: Any, choices: Dict[str, Any], where: str, errors: List[str]):
    """Return ``choices[value]``, or record why ``value`` names none of them."""
    if not isinstance(value, str):
        errors.append(f"{where}: expected a string, got {type(value).__name__}")
        return None
    if value not in choices:
        errors.append(f"{where}: '{value}' is not one of {', '.join(choices)}")
        return None
    return choices[value]


def _build_node(ident: str, definition: Any, errors: List[str]):
    """Build the node class for one keyword, or record why it cannot be built."""
    if definition == 'void' or definition is None:
        return MetaVoid[custom_keyword(ident)]

    if not isinstance(definition, dict):
        errors.append(f"attributes.{ident}: expected 'void' or a mapping, got {definition!r}")
        return None

    shape = definition.get('shape')
    keys = _lookup(shape, SHAPES, f"attributes.{ident}.shape", errors)
    if keys is None:
        return None

    payloads = {}
    for key in keys:
        payload = _lookup(definition.get(key), PAYLOADS, f"attributes.{ident}.{key}", errors)
        if payload is not None:
            payloads[key] = payload

    unknown = set(definition) - {'shape'} - set(keys)
    for key in sorted(unknown, key=str):
        errors.append(f"attributes.{ident}.{key}: not used by shape '{shape}'")

    if len(payloads) != len(keys):
        return None

    keyword = custom_keyword(ident)
    if shape == 'void':
        return MetaVoid[keyword]
    if shape == 'value':
        return MetaValue[keyword, payloads['payload']]
    if shape == 'list':
        return MetaList[keyword, payloads['item']]
    return MetaEnclosedList[keyword, payloads['paren'], payloads['brace']]


def attr_set_from_dict(data: Any, source: str = "<dict>") -> AttrSet:
    """Validate a parsed definition and build its AttrSet.

    Every problem is collected before raising, so one run reports them all.
    """
    errors: List[str] = []
    if not isinstance(data, dict):
        raise ConfigError(source, [f"expected a mapping at top level, got {type(data).__name__}"])

    name = data.get('name')
    if not isinstance(name, str) or not name:
        errors.append("name: required string")
        name = source

    base = None
    extends = data.get('extends')
    if extends is not None:
        base = _lookup(extends, BUILTIN_SETS, "extends", errors)

    attributes = data.get('attributes') or {}
    if not isinstance(attributes, dict):
        errors.append("attributes: expected a mapping of keyword to shape")
        attributes = {}
    if not attributes and base is None:
        errors.append("attributes: at least one attribute is required")

    nodes = []
    for ident, definition in attributes.items():
        if not isinstance(ident, str) or not ident.isidentifier():
            errors.append(f"attributes: '{ident}' is not a valid keyword")
            continue
        node = _build_node(ident, definition, errors)
        if node is not None:
            nodes.append(node)

    for key in sorted(set(data) - {'name', 'extends', 'attributes'}, key=str):
        errors.append(f"{key}: unknown setting")

    if errors:
        raise ConfigError(source, errors)

    if base is not None:
        logger.debug("Extending %s attributes with %d keyword(s)", base.name, len(nodes))
        return base.extend(name, nodes)
    return AttrSet(name, nodes)


def attr_set_from_yaml(text: str, source: str = "<string>") -> AttrSet:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(source, [f"invalid YAML: {e}"]) from e
    return attr_set_from_dict(data, source)


def load_attr_set(path: Union[str, Path]) -> AttrSet:
    """Load an attribute set definition from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Attribute set not found: {path}")

    logger.debug("Loading attribute set from %s", path)
    with open(path) as f:
        text = f.read()
    attrs = attr_set_from_yaml(text, str(path))
    logger.info("Loaded attribute set %r with %d keyword(s)", attrs.name, len(attrs))
    return attrs


def resolve_attr_set(spec: str) -> AttrSet:
    """Resolve a builtin set name or a path to a YAML definition."""
    if spec in BUILTIN_SETS:
        return BUILTIN_SETS[spec]
    return load_attr_set(spec)
