"""Configuration helpers for dk_common."""

from .env import parse_bool_env, parse_choice_env, parse_int_env, parse_labels_env

__all__ = [
    "parse_bool_env",
    "parse_choice_env",
    "parse_int_env",
    "parse_labels_env",
]
