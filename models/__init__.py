from models.user import User, RevokedToken
from models.project import Project, ProjectCategory, CATEGORIES, STATUSES
