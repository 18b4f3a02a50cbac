"""
JSON schemas for configuration validation.
"""

STORE_SCHEMA = {
    "type": "object",
    "properties": {
        "backend": {"type": "string", "enum": ["memory", "redis"]},
        "redis_url": {"type": "string"},
        "key_prefix": {"type": "string", "pattern": "^[A-Za-z0-9_.:-]+$"},
        "socket_timeout": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "ttl_seconds": {"type": "integer", "minimum": 1},
    },
    "allOf": [
        {
            "if": {"properties": {"backend": {"const": "redis"}}},
            "then": {"properties": {"redis_url": {"pattern": "^(redis|rediss|unix)://"}}},
        },
    ],
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
        "logger_name": {"type": "string"},
    },
}

SWEEPER_SCHEMA = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "interval_seconds": {"type": "number", "exclusiveMinimum": 0},
        "batch_limit": {"type": "integer", "minimum": 1},
    },
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "store": STORE_SCHEMA,
        "logging": LOGGING_SCHEMA,
        "sweeper": SWEEPER_SCHEMA,
    },
}
