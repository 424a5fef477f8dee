"""Runtime settings persisted next to the workflows."""

from __future__ import annotations

from ..extensions import db


class AppSetting(db.Model):
    """Key/value pair such as the API protection toggle."""

    __tablename__ = "app_settings"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.String(255), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<AppSetting {self.key}={self.value}>"
