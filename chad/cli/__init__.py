# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the session builder.

Commands are organized into separate modules:
- builder.py: run, tick and heartbeat
- config.py: config show
- db.py: db init / db check
- shared.py: colors, icons and fatal settings loading
"""
