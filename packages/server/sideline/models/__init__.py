# SQLModel definitions — imported here to ensure metadata is populated.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .team import Team  # noqa: F401
from .membership import Membership  # noqa: F401
from .request import TeamRequest  # noqa: F401
