"""Core application components: settings, logging and exceptions."""
