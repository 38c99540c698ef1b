"""Deliver build-complete notifications for watched PRs.

Delivery failures are logged and never propagate into the refresh cycle.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Sequence

import requests

from prmonitor.config import NotificationsConfig
from prmonitor.models import BuildStatus, PullRequest

LOG = logging.getLogger("prmonitor.services.notifier")


def notification_text(pr: PullRequest, status: BuildStatus) -> tuple[str, str, str]:
    """Title, subtitle and body of a build-complete notification."""
    title = f"{status.icon} Build {status.display_name}"
    body = f"PR #{pr.number} in {pr.repository.name}"
    return title, pr.title, body


class Notifier(ABC):
    """Sink for build-complete events."""

    @abstractmethod
    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        """Announce that pr's build settled on status."""
        ...


class LogNotifier(Notifier):
    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or LOG

    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        title, subtitle, body = notification_text(pr, status)
        self._log.info("%s | %s | %s", title, subtitle, body)


class CommandNotifier(Notifier):
    """Run a command per notification, e.g. ["notify-send", "{title}", "{body}"]."""

    def __init__(self, command: Sequence[str], timeout: float = 10) -> None:
        self.command = list(command)
        self.timeout = timeout

    def _argv(self, pr: PullRequest, status: BuildStatus) -> list[str]:
        title, subtitle, body = notification_text(pr, status)
        values = {"title": title, "subtitle": subtitle, "body": body, "url": pr.url, "status": status.value}
        return [arg.format(**values) for arg in self.command]

    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        argv = self._argv(pr, status)
        try:
            subprocess.run(argv, check=True, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as e:
            LOG.warning("Notification command %s failed: %s", argv[0], e)


class VoiceNotifier(CommandNotifier):
    """Speak a fixed phrase when a build succeeds (e.g. ["say"] or ["espeak"])."""

    def __init__(self, command: Sequence[str], text: str, timeout: float = 30) -> None:
        super().__init__(command, timeout=timeout)
        self.text = text

    def _argv(self, pr: PullRequest, status: BuildStatus) -> list[str]:
        return [*self.command, self.text]

    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        if status is not BuildStatus.SUCCESS:
            return
        super().notify(pr, status)


class WebhookNotifier(Notifier):
    """POST a JSON payload per notification (Slack-compatible "text" field included)."""

    def __init__(self, url: str, timeout: float = 10, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        title, subtitle, body = notification_text(pr, status)
        payload = {
            "text": f"{title}: {subtitle} ({body}) {pr.url}",
            "pr": pr.id,
            "title": pr.title,
            "url": pr.url,
            "status": status.value,
        }
        try:
            resp = self._session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            LOG.warning("Webhook notification to %s failed: %s", self.url, e)
            return
        if resp.status_code >= 400:
            LOG.warning("Webhook notification to %s failed: %s %s", self.url, resp.status_code, resp.text)


class CompositeNotifier(Notifier):
    """Fan out to several notifiers; one failing sink does not stop the others."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self.notifiers = list(notifiers)

    def notify(self, pr: PullRequest, status: BuildStatus) -> None:
        for notifier in self.notifiers:
            try:
                notifier.notify(pr, status)
            except Exception as e:
                LOG.exception("Notifier %s failed: %s", type(notifier).__name__, e)


def build_notifier(config: NotificationsConfig) -> CompositeNotifier:
    """Notifier chain from config; empty when notifications are disabled."""
    if not config.enabled:
        return CompositeNotifier([])
    notifiers: list[Notifier] = []
    if config.log:
        notifiers.append(LogNotifier())
    if config.command:
        notifiers.append(CommandNotifier(config.command))
    if config.voice_command:
        notifiers.append(VoiceNotifier(config.voice_command, config.voice_text))
    if config.webhook_url:
        notifiers.append(WebhookNotifier(config.webhook_url, timeout=config.webhook_timeout))
    return CompositeNotifier(notifiers)
