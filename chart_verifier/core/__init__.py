"""
Core components for chart verification.

Contains:
- Errors raised by the verification engine
- Typed run flags (ConfigStore)
- Check catalog and enable/disable registry
- Profiles (mandatory/optional classification)
- Report data model
"""
