from .attachments import AttachmentHandler
from .auth import AuthHandler
from .base import BaseHandler, ToolResponse
from .issues import IssueHandler
from .projects import ProjectHandler
from .teams import TeamHandler
from .users import UserHandler

__all__ = [
    "AttachmentHandler",
    "AuthHandler",
    "BaseHandler",
    "IssueHandler",
    "ProjectHandler",
    "TeamHandler",
    "ToolResponse",
    "UserHandler",
]
