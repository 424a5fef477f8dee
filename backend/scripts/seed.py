"""Seed the database with an example quote approval workflow."""
from __future__ import annotations

import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.approvals import create_app
from backend.approvals.workflow.errors import DuplicateWorkflow

EXAMPLE_DOCUMENT_ID = "QUOTE-EXAMPLE-0001"
EXAMPLE_CLIENT = "Example Corp"


def main() -> None:
    app = create_app()
    with app.app_context():
        service = app.extensions["workflow_service"]
        try:
            workflow = service.create_workflow(
                {
                    "documentId": EXAMPLE_DOCUMENT_ID,
                    "documentType": "Migration Quote",
                    "clientName": EXAMPLE_CLIENT,
                    "amount": 12500,
                }
            )
        except DuplicateWorkflow as exc:
            print("Seed skipped:", exc.message)
            return

        print(
            "Seed completed",
            f"workflow={workflow.id}",
            f"steps={' -> '.join(step.role for step in workflow.workflow_steps)}",
        )


if __name__ == "__main__":
    main()
