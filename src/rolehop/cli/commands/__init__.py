from .cache import cache_app
from .env import env
from .provision import apply, destroy, plan, render
from .whoami import whoami

__all__ = ["apply", "cache_app", "destroy", "env", "plan", "render", "whoami"]
