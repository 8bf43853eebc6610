"""Render HTML reports from result files with an XSLT template."""

import logging
import shutil
from dataclasses import dataclass, field
from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path

from lxml import etree

from jmeter_run_task.errors import IOFailure

log = logging.getLogger(__name__)

DEFAULT_REPORT_POSTFIX = "-report.html"
DEFAULT_TEMPLATE = "jmeter-results-report.xsl"
DEFAULT_TEMPLATE_IMAGES = ("collapse.png", "expand.png")


def _resources() -> Traversable:
    return files("jmeter_run_task") / "resources"


def report_file_for(result_file: Path, postfix: str = DEFAULT_REPORT_POSTFIX) -> Path:
    """Return the report path for a result file.

    A trailing ``.xml`` is replaced by the postfix, any other name gets the
    postfix appended.
    """
    name = result_file.name
    if name.endswith(".xml"):
        name = name.removesuffix(".xml")
    return result_file.with_name(name + postfix)


@dataclass(frozen=True, kw_only=True)
class ReportRenderer:
    """Transforms result files into HTML reports."""

    transform: etree.XSLT = field(repr=False)
    postfix: str = DEFAULT_REPORT_POSTFIX

    @classmethod
    def from_template(
        cls,
        template: Path | None,
        report_dir: Path,
        postfix: str = DEFAULT_REPORT_POSTFIX,
    ) -> "ReportRenderer":
        """Load a custom XSLT template, or the packaged one.

        The packaged template references images that are copied into the
        report directory.

        Raises:
            IOFailure: If the template can't be read or parsed, or the images
                can't be copied

        """
        source: Traversable
        if template is None:
            source = _resources() / DEFAULT_TEMPLATE
            cls._copy_images(report_dir)
        else:
            source = template

        try:
            stylesheet = etree.fromstring(source.read_bytes())
            transform = etree.XSLT(stylesheet)
        except OSError as exc:
            raise IOFailure(
                f"Can't read report template {source}",
                path=template,
                phase="report",
            ) from exc
        except (etree.XMLSyntaxError, etree.XSLTParseError) as exc:
            raise IOFailure(
                f"Invalid report template {source}: {exc}",
                path=template,
                phase="report",
            ) from exc

        return cls(transform=transform, postfix=postfix)

    @staticmethod
    def _copy_images(report_dir: Path) -> None:
        try:
            report_dir.mkdir(parents=True, exist_ok=True)
            for name in DEFAULT_TEMPLATE_IMAGES:
                with (_resources() / name).open("rb") as src:
                    with (report_dir / name).open("wb") as dst:
                        shutil.copyfileobj(src, dst)
        except OSError as exc:
            raise IOFailure(
                f"Error copying resources to {report_dir}",
                path=report_dir,
                phase="report",
            ) from exc

    def render(self, result_file: Path) -> Path:
        """Transform one result file and return the written report path.

        Raises:
            IOFailure: If the result can't be read or transformed, or the
                report can't be written

        """
        report_file = report_file_for(result_file, self.postfix)
        log.info("transforming: %s to %s", result_file, report_file)

        try:
            document = etree.parse(str(result_file))
            report = self.transform(document)
        except (OSError, etree.XMLSyntaxError) as exc:
            raise IOFailure(
                f"Error reading result file {result_file}",
                path=result_file,
                phase="report",
            ) from exc
        except etree.XSLTApplyError as exc:
            raise IOFailure(
                f"Error transforming results {result_file}: {exc}",
                path=result_file,
                phase="report",
            ) from exc

        try:
            report_file.write_bytes(bytes(report))
        except OSError as exc:
            raise IOFailure(
                f"Error writing report file {report_file}",
                path=report_file,
                phase="report",
            ) from exc

        return report_file
