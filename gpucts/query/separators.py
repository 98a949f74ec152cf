"""Delimiters of the query string grammar."""

LEVEL_SEPARATOR = ":"
PATH_SEPARATOR = ","
PARAM_SEPARATOR = ","
PARAM_KV_SEPARATOR = "="
