from report_app.core.models.department import ActiveState, DeletedState, Department, DepartmentState
from report_app.core.models.master_task import MasterTask
from report_app.core.models.week import Week, WeekTaskProgress
from report_app.core.models.ad_hoc_task import AdHocTask
from report_app.core.models.metric import MetricDefinition, WeekMetricValue
from report_app.core.models.event import Event

__all__ = [
    "ActiveState",
    "AdHocTask",
    "DeletedState",
    "Department",
    "DepartmentState",
    "Event",
    "MasterTask",
    "MetricDefinition",
    "Week",
    "WeekMetricValue",
    "WeekTaskProgress",
]
