"""Quality control: flag types, flags and their summary."""

from apps.api.quality_control.flag_types import QcFlagTypeService
from apps.api.quality_control.flags import QcFlagService, prepare_flag_period
from apps.api.quality_control.summary import QcFlagSummaryService

__all__ = [
    "QcFlagService",
    "QcFlagSummaryService",
    "QcFlagTypeService",
    "prepare_flag_period",
]
