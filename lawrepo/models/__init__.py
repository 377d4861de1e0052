# lawrepo/models/__init__.py
from lawrepo.models.user import User, Role, UserRole  # noqa
from lawrepo.models.course import Course, CourseEnrollment  # noqa
from lawrepo.models.assignment import Assignment, AssignmentSubmission  # noqa
from lawrepo.models.article import Article, ArticleVersion  # noqa
from lawrepo.models.event import Event, EventRegistration  # noqa
from lawrepo.models.video import Video, VideoView  # noqa
from lawrepo.models.mux_webhook_event import MuxWebhookEvent  # noqa
from lawrepo.models.system import SystemSetting, AuditLog  # noqa
