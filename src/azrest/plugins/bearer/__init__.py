"""Bearer token authentication plugin.

See Also:
    :class:`~azrest.plugins.bearer.plugin.BearerAuthPlugin`
"""

from azrest.plugins.bearer.plugin import BearerAuthPlugin

__all__ = ["BearerAuthPlugin"]
