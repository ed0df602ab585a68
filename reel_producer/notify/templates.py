"""HTML bodies for approval emails and the approval landing pages."""

from datetime import datetime
from html import escape
from typing import Optional, List, Any
from urllib.parse import urlencode, quote


CARD = "background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;"
BUTTON = (
    "color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; "
    "display: inline-block; font-weight: bold;"
)


def approve_link(base_url: str, video_url: str, caption: str, hashtags: List[str]) -> str:
    """Link that triggers the approval callback with the content embedded."""
    query = urlencode(
        {
            "action": "approve",
            "videoUrl": video_url,
            "caption": caption,
            "hashtags": " ".join(hashtags),
        },
        quote_via=quote,
    )
    return f"{base_url.rstrip('/')}/email-approval/content-action?{query}"


def reject_link(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/email-approval/content-action?action=reject"


def approval_request_html(base_url: str) -> str:
    """Plain approve/reject request without content."""
    approve_url = f"{base_url.rstrip('/')}/email-approval/content-action?action=approve"
    return f"""
<div style="font-family: sans-serif; padding: 20px;">
  <h2>Email Approval Request</h2>
  <p>Someone has requested approval. Please choose one of the options below:</p>
  <div style="margin-top: 20px;">
    <a href="{escape(approve_url)}" style="background-color: #4CAF50; {BUTTON}">Approve</a>
    <a href="{escape(reject_link(base_url))}" style="background-color: #f44336; {BUTTON} margin-left: 10px;">Reject</a>
  </div>
</div>
"""


def content_package_html(base_url: str, video_url: str, caption: str, hashtags: List[str]) -> str:
    """
    Content-ready email: video link, caption, hashtags and approve/reject buttons.

    Args:
        base_url: Public base URL of this service (link target)
        video_url: Generated video URL
        caption: Caption text without hashtags
        hashtags: Hashtags, each starting with '#'

    Returns:
        HTML body
    """
    hashtags_text = " ".join(hashtags)
    approve_url = approve_link(base_url, video_url, caption, hashtags)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #333; text-align: center;">Your Content is Ready!</h2>

  <div style="{CARD}">
    <h3 style="margin-top: 0;">Video</h3>
    <a href="{escape(video_url)}" style="color: #007bff; word-break: break-all;">{escape(video_url)}</a>
  </div>

  <div style="{CARD}">
    <h3 style="margin-top: 0;">Caption</h3>
    <p style="font-style: italic; line-height: 1.6;">"{escape(caption)}"</p>
  </div>

  <div style="{CARD}">
    <h3 style="margin-top: 0;">Hashtags</h3>
    <p style="color: #6c757d; word-break: break-word;">{escape(hashtags_text)}</p>
  </div>

  <div style="{CARD} border-left: 4px solid #ffc107;">
    <h4 style="margin-top: 0;">Content Approval</h4>
    <p>Please review the content above and choose to approve or reject it.</p>
    <div style="text-align: center;">
      <a href="{escape(approve_url)}" style="background-color: #28a745; {BUTTON} margin-right: 10px;">Approve Content</a>
      <a href="{escape(reject_link(base_url))}" style="background-color: #dc3545; {BUTTON}">Reject Content</a>
    </div>
  </div>
</div>
"""


def _page(title: str, body: str) -> str:
    return f"""
<html>
  <head>
    <title>{escape(title)}</title>
    <style>
      body {{ font-family: Arial, sans-serif; text-align: center; padding: 50px; }}
      .container {{ max-width: 600px; margin: 0 auto; }}
      .approved {{ color: #28a745; }}
      .rejected {{ color: #dc3545; }}
      .status {{ margin: 20px 0; padding: 15px; border-radius: 8px; }}
      .success {{ background-color: #d4edda; color: #155724; }}
      .error {{ background-color: #f8d7da; color: #721c24; }}
    </style>
  </head>
  <body><div class="container">{body}</div></body>
</html>
"""


def rejected_page(content_id: Optional[str] = None) -> str:
    return _page(
        "Content Rejected",
        f"""
<h2 class="rejected">Content Rejected</h2>
<p>The content has been rejected and will not be processed further.</p>
<p><small>Content ID: {escape(content_id or "N/A")}</small></p>
<p><small>Rejected at: {datetime.now().isoformat(timespec="seconds")}</small></p>
""",
    )


def approved_page(
    video_url: Optional[str],
    caption: Optional[str],
    hashtags: Optional[str],
    result: Optional[Any] = None,
) -> str:
    """Landing page after the approve link is clicked.

    ``result`` is the ApprovalResult of the publish attempt, if one was made.
    """
    status = ""
    if result is not None:
        css = "success" if result.success else "error"
        container = f"<p><small>Container ID: {escape(result.container_id)}</small></p>" if result.container_id else ""
        status = f"""
<div class="status {css}">
  <h4>Instagram Upload Status:</h4>
  <p>{escape(result.message)}</p>
  {container}
</div>
"""

    return _page(
        "Content Approved",
        f"""
<h2 class="approved">Content Approved</h2>
<p>The content has been approved successfully!</p>
{status}
<div style="text-align: left; {CARD}">
  <h4>Content Details:</h4>
  <p><strong>Video:</strong> {escape(video_url or "N/A")}</p>
  <p><strong>Caption:</strong> {escape(caption or "N/A")}</p>
  <p><strong>Hashtags:</strong> {escape(hashtags or "N/A")}</p>
</div>
<p><small>Approved at: {datetime.now().isoformat(timespec="seconds")}</small></p>
""",
    )


def invalid_action_page() -> str:
    return '<h2 style="text-align: center; margin-top: 100px;">Invalid action.</h2>'


def confirmation_page(action: str) -> str:
    """Asks the reviewer to confirm an approve or reject before it is recorded."""
    label = action.capitalize()
    color = "#4CAF50" if action == "approve" else "#f44336"
    confirm_url = f"/email-approval/confirm?{urlencode({'action': action})}"
    return f"""
<html>
  <head>
    <title>{escape(label)} Confirmation</title>
    <style>
      body {{ font-family: Arial, sans-serif; text-align: center; padding-top: 100px; }}
      button {{ background-color: {color}; color: white; padding: 10px 20px; border: none;
               border-radius: 5px; cursor: pointer; font-size: 16px; }}
    </style>
  </head>
  <body>
    <h2>{escape(label)} Request</h2>
    <p>Are you sure you want to <b>{escape(action)}</b> this request?</p>
    <button onclick="confirmAction()">Confirm {escape(label)}</button>
    <script>
      function confirmAction() {{
        if (confirm('Are you sure you want to {escape(action)} this request?')) {{
          window.location.href = '{confirm_url}';
        }} else {{
          alert('Action cancelled.');
        }}
      }}
    </script>
  </body>
</html>
"""


def confirmed_page(action: str) -> str:
    if action == "approve":
        return '<h2 style="color: green; text-align: center; margin-top: 100px;">Request Approved Successfully!</h2>'
    if action == "reject":
        return '<h2 style="color: red; text-align: center; margin-top: 100px;">Request Rejected!</h2>'
    return '<h2 style="text-align: center; margin-top: 100px;">Invalid action.</h2>'
