"""Domain modules package."""

from lessonhub.modules.availability import models as availability_models  # noqa: F401
from lessonhub.modules.booking import models as booking_models  # noqa: F401
from lessonhub.modules.identity import models as identity_models  # noqa: F401
from lessonhub.modules.messaging import models as messaging_models  # noqa: F401
