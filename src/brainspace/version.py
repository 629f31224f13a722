VERSION = "0.3.0"

# Snapshot files written by older majors are rejected by the loader
SNAPSHOT_SCHEMA_VERSION = "1.0.0"
