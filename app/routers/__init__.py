# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - projects.py: Projects, plus folders/images/shares listed per project
# - folders.py: Folder details, rename and (recursive) deletion
# - images.py: Image views, approval, deletion, comments and marks
# - comments.py / marks.py: Edit and delete individual comments and marks
# - shares.py: Share invitations for the recipient
# - profiles.py: Profiles and storage usage
# - notifications.py: Notification logs
# - votes.py: Image voting
# - functions.py: /functions/v1 handlers (uploads, deletes, email, checkout)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import projects
from . import folders
from . import images
from . import comments
from . import marks
from . import shares
from . import profiles
from . import notifications
from . import votes
from . import functions

__all__ = [
    "health",
    "projects",
    "folders",
    "images",
    "comments",
    "marks",
    "shares",
    "profiles",
    "notifications",
    "votes",
    "functions",
]
