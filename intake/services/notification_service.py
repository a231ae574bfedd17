import html
import re
from collections.abc import Sequence
from urllib.parse import urlparse

from intake.models.upload import NotificationMessage, UploadOutcome
from intake.schemas.submission import SubmissionFields

SUBJECT_PREFIX = "[Business submission]"
NO_IMAGES_TEXT = "No images attached"

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


def escape_html(value: str | None) -> str:
    """Escape & < > " ' for element content."""
    if not value:
        return ""
    return html.escape(str(value), quote=True)


def escape_attribute(value: str | None) -> str:
    return escape_html(value).replace("`", "&#96;")


def _is_web_link(value: str) -> bool:
    return urlparse(value.strip()).scheme.lower() in ("http", "https")


class NotificationComposer:
    def compose(
        self,
        fields: SubmissionFields,
        outcomes: Sequence[UploadOutcome],
        recipient: str | None,
    ) -> NotificationMessage:
        # Header values cannot carry line breaks
        name = _LINE_BREAKS_RE.sub(" ", escape_html(fields.business_name)).strip()
        subject = f"{SUBJECT_PREFIX} {name}"
        body = self.render_body(fields, outcomes)
        return NotificationMessage(recipient=recipient, subject=subject, body=body)

    def render_body(self, fields: SubmissionFields, outcomes: Sequence[UploadOutcome]) -> str:
        parts = [
            "<h2>New business submission</h2>",
            "<ul>",
            f"<li><strong>Business name:</strong> {escape_html(fields.business_name)}</li>",
            f"<li><strong>Address:</strong> {escape_html(fields.address)}</li>",
            f"<li><strong>Phone:</strong> {escape_html(fields.phone)}</li>",
            f"<li><strong>Discount rate:</strong> {escape_html(fields.discount_rate)}</li>",
            f"<li><strong>Map link:</strong> {self._render_link(fields.map_link)}</li>",
            f"<li><strong>Promo tag:</strong> {escape_html(fields.promo_tag)}</li>",
            "</ul>",
            "<h3>Description</h3>",
            f"<p>{_NEWLINE_RE.sub('<br/>', escape_html(fields.description))}</p>",
            "<hr/>",
        ]
        parts.extend(self._render_images(outcomes))
        parts.extend(self._render_skipped(outcomes))
        return "\n".join(parts)

    def _render_link(self, url: str | None) -> str:
        if not url or not _is_web_link(url):
            return escape_html(url)
        return f'<a href="{escape_attribute(url.strip())}">{escape_html(url)}</a>'

    def _render_images(self, outcomes: Sequence[UploadOutcome]) -> list[str]:
        stored = [o.stored for o in outcomes if o.is_stored]
        if not stored:
            return [f"<p>{NO_IMAGES_TEXT}</p>"]

        lines = [f"<h3>Attached images ({len(stored)})</h3>", "<ul>"]
        for obj in stored:
            label = f"{escape_html(obj.key)} ({round(obj.size / 1024)} KB)"
            if obj.url:
                lines.append(f'<li><a href="{escape_attribute(obj.url)}">{label}</a></li>')
            else:
                lines.append(f"<li>{label} (link unavailable)</li>")
        lines.append("</ul>")
        return lines

    def _render_skipped(self, outcomes: Sequence[UploadOutcome]) -> list[str]:
        skipped = [o for o in outcomes if not o.is_stored]
        if not skipped:
            return []
        lines = [f"<h3>Skipped files ({len(skipped)})</h3>", "<ol>"]
        for outcome in skipped:
            lines.append(
                f"<li>{escape_html(outcome.original_name) or '(unnamed)'}: "
                f"{escape_html(outcome.reason)}</li>"
            )
        lines.append("</ol>")
        return lines
