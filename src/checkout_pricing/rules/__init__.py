"""Rules subpackage - the default rule table and rule file loading."""
from .default_rules import default_rules

__all__ = ['default_rules']
