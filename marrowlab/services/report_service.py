from typing import Any, Dict

from marrowlab.commons.logger import logger
from marrowlab.helpers.file_transport import FileSender
from marrowlab.helpers.report_builder import ReportBuilder
from marrowlab.validation.validators import validate_report_form_or_raise


class ReportService:
    def __init__(self, builder: ReportBuilder, paths, export_cfg):
        self.builder = builder
        self.paths = paths
        self.export_cfg = export_cfg

    def render(self, form_data: Dict[str, Any]) -> str:
        form = validate_report_form_or_raise(form_data)
        return self.builder.build(form)

    def export(self, form_data: Dict[str, Any]) -> str:
        report = self.render(form_data)
        sender = FileSender(self.paths["outbox"], self.export_cfg["filename_pattern"])
        p = sender.send(report)
        logger.info(f"Report written to {p}")
        return p
