# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .profile_service import ProfileService
from .project_service import ProjectService
from .folder_service import FolderService
from .image_service import ImageService
from .notification_service import NotificationService
from .comment_service import CommentService
from .mark_service import MarkService
from .share_service import ShareService
from .billing_service import BillingService
from .vote_service import VoteService

__all__ = [
    "ProfileService",
    "ProjectService",
    "FolderService",
    "ImageService",
    "NotificationService",
    "CommentService",
    "MarkService",
    "ShareService",
    "BillingService",
    "VoteService",
]
