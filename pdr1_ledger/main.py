"""Main module entrypoint for local runtime execution.

`api` validates startup configuration and launches the FastAPI service;
`process-files` runs one batch from local workbook paths and prints its result.
"""

import argparse
import json
from pathlib import Path

import uvicorn

from pdr1_ledger.bootstrap import bootstrap_create_application, bootstrap_create_batch_orchestrator
from pdr1_ledger.config import config_configure_logging, config_load_settings
from pdr1_ledger.domain import SOURCE_PROCESSING_ORDER, SourceType


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when a processed batch fails.
    """

    argument_parser = argparse.ArgumentParser(description="PDR1 report ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "process-files"),
        help="Runtime command: `api` starts server, `process-files` runs one batch from local workbooks",
        type=str,
    )
    for source_type in SOURCE_PROCESSING_ORDER:
        argument_parser.add_argument(
            main_source_option(source_type),
            dest=source_type.value.lower(),
            type=Path,
            help=f"Workbook path for the {source_type.value} source",
        )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    config_configure_logging(settings)

    if parsed_arguments.command == "process-files":
        files: dict[SourceType, bytes] = {}
        for source_type in SOURCE_PROCESSING_ORDER:
            workbook_path = getattr(parsed_arguments, source_type.value.lower())
            if workbook_path is not None:
                files[source_type] = workbook_path.read_bytes()
        batch_orchestrator = bootstrap_create_batch_orchestrator()
        processing_result = batch_orchestrator.job_process_files(files)
        print(json.dumps(processing_result.job_to_payload(), indent=2))
        if not processing_result.success:
            raise SystemExit(1)
        return

    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_source_option(source_type: SourceType) -> str:
    """Return the CLI option naming one source workbook, e.g. `--im-deal`."""

    return "--" + source_type.value.lower().replace("_", "-")


if __name__ == "__main__":
    main()
