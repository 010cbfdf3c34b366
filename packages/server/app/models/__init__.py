# SQLModel definitions imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .profile import Profile  # noqa: F401
from .project import Project  # noqa: F401
from .project_share import ProjectShare  # noqa: F401
from .course import Course  # noqa: F401
from .enrollment import Enrollment  # noqa: F401
from .subscription import Subscription  # noqa: F401
from .conversation import Conversation  # noqa: F401
