# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - project.py: Projects, visibility and plan limits
# - folder.py: Folder tree and deletion summaries
# - image.py: Upload flow and image listings
# - comment.py: Threaded image comments
# - mark.py: Shapes drawn on images
# - share.py: Project invitations
# - profile.py: User profiles and storage usage
# - notification.py: Activity emails and their log
# - billing.py: Checkout and votes
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Project & Folder Models
# -----------------------------------------------------------------------------
from .project import (
    ProjectCreate,
    ProjectLimits,
    ProjectRename,
    ProjectResponse,
    ProjectVisibility,
    ProjectVisibilityUpdate,
    ThumbnailUpdate,
)
from .folder import (
    FolderCreate,
    FolderDeletionResult,
    FolderRename,
    FolderResponse,
)

# -----------------------------------------------------------------------------
# Image Models - Upload flow
# -----------------------------------------------------------------------------
from .image import (
    DeleteFolderImagesRequest,
    DeleteImageRequest,
    FolderImagesDeletion,
    SavedImage,
    SaveMetadataRequest,
    UploadUrlRequest,
    UploadUrlResponse,
)

# -----------------------------------------------------------------------------
# Review Models - Comments & marks
# -----------------------------------------------------------------------------
from .comment import CommentCreate, CommentResponse, CommentUpdate
from .mark import Mark, MarkCreate, MarkerColor, MarkType, MarkUpdate

# -----------------------------------------------------------------------------
# Collaboration Models
# -----------------------------------------------------------------------------
from .share import (
    ProjectShareView,
    ShareCreate,
    ShareDecision,
    ShareRequestView,
    ShareStatus,
)
from .profile import ProfileResponse, ProfileUpdate, PublicProfile, StorageUsage
from .notification import (
    ActivityNotification,
    Coordinates,
    NotificationLog,
    NotificationResult,
    NotificationStats,
    NotificationType,
    SendNotificationsRequest,
    ShareInvitation,
)
from .billing import CheckoutRequest, CheckoutResponse, VoteCount, VoteRequest

__all__ = [
    # Project
    "ProjectCreate",
    "ProjectLimits",
    "ProjectRename",
    "ProjectResponse",
    "ProjectVisibility",
    "ProjectVisibilityUpdate",
    "ThumbnailUpdate",
    # Folder
    "FolderCreate",
    "FolderDeletionResult",
    "FolderRename",
    "FolderResponse",
    # Image
    "DeleteFolderImagesRequest",
    "DeleteImageRequest",
    "FolderImagesDeletion",
    "SavedImage",
    "SaveMetadataRequest",
    "UploadUrlRequest",
    "UploadUrlResponse",
    # Comment
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
    # Mark
    "Mark",
    "MarkCreate",
    "MarkerColor",
    "MarkType",
    "MarkUpdate",
    # Share
    "ProjectShareView",
    "ShareCreate",
    "ShareDecision",
    "ShareRequestView",
    "ShareStatus",
    # Profile
    "ProfileResponse",
    "ProfileUpdate",
    "PublicProfile",
    "StorageUsage",
    # Notification
    "ActivityNotification",
    "Coordinates",
    "NotificationLog",
    "NotificationResult",
    "NotificationStats",
    "NotificationType",
    "SendNotificationsRequest",
    "ShareInvitation",
    # Billing
    "CheckoutRequest",
    "CheckoutResponse",
    "VoteCount",
    "VoteRequest",
]
