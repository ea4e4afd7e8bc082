from buildr.models.project import Project
from buildr.models.project_version import ProjectVersion
from buildr.models.event_log import EventLog

__all__ = ["Project", "ProjectVersion", "EventLog"]
