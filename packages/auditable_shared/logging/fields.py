"""Canonical logging field names used by audit processing.

Keeping names centralized keeps engine, resolver, and warmer log lines
queryable with one key set.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
CONTEXT = "context"
EXCEPTION = "exception"

# Audited entity fields.
ENTITY_CLASS = "entity_class"
ENTITY_ID = "entity_id"
ENTRY_COUNT = "entry_count"
USERNAME = "username"

# Configuration resolution fields.
CONFIG_SOURCE = "config_source"
CACHE_PATH = "cache_path"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
