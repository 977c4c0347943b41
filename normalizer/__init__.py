"""
Normalizer module for parsing descriptions and ledger cell values.
"""
from .description_parser import TransferDescriptor, parse_description, intended_parent_id
from .value_parser import is_blank, parse_bool, parse_text

__all__ = [
    'TransferDescriptor', 'parse_description', 'intended_parent_id',
    'is_blank', 'parse_bool', 'parse_text',
]
