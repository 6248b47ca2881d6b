from __future__ import annotations

from string import Template
from typing import Any

from maintenance_service.application.ports.mail import RenderedEmail
from maintenance_service.domain.value_objects.enums import NotificationType

_TEMPLATES: dict[str, tuple[str, str]] = {
    NotificationType.NEW_CHAPTER: (
        "[$site_name] New chapter: $story_title",
        "Hi $user_name,\n\n"
        "$author_name published a new chapter of \"$story_title\".\n\n"
        "Read it at $site_url/?p=$chapter_id\n",
    ),
    NotificationType.CHAPTER_UPDATE: (
        "[$site_name] Chapter updated: $story_title",
        "Hi $user_name,\n\n"
        "A chapter of \"$story_title\" by $author_name was updated.\n\n"
        "Read it at $site_url/?p=$chapter_id\n",
    ),
    NotificationType.STORY_STATUS: (
        "[$site_name] \"$story_title\" is now $new_status",
        "Hi $user_name,\n\n"
        "The status of \"$story_title\" by $author_name changed to $new_status.\n\n"
        "$site_url/?p=$story_id\n",
    ),
    NotificationType.AUTHOR_DEMOTED: (
        "[$site_name] Your author role has changed",
        "Hi $user_name,\n\n"
        "Your account no longer has any published stories, so it was moved "
        "back to a reader account. Publishing a story will restore author "
        "access.\n\n$site_url\n",
    ),
}

_FALLBACK = ("[$site_name] Notification", "Hi $user_name,\n\nYou have a new notification.\n\n$site_url\n")


class TemplateRenderer:
    """Implements application.ports.mail.MessageRenderer with ``string.Template``.

    Missing variables are left in place rather than failing the send.
    """

    def __init__(self, *, site_name: str, site_url: str) -> None:
        self._defaults = {"site_name": site_name, "site_url": site_url.rstrip("/")}

    def render(self, notification_type: str, variables: dict[str, Any]) -> RenderedEmail:
        subject_tpl, body_tpl = _TEMPLATES.get(notification_type, _FALLBACK)
        values = {**self._defaults, **{k: str(v) for k, v in variables.items()}}
        return RenderedEmail(
            subject=Template(subject_tpl).safe_substitute(values),
            body=Template(body_tpl).safe_substitute(values),
        )
