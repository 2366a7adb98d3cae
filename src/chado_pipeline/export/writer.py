"""Run every export family and record what was written."""

from datetime import datetime, timezone
from pathlib import Path

import structlog
import yaml

from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.export.fasta import write_fasta
from chado_pipeline.export.files import writing
from chado_pipeline.export.gff import write_gff
from chado_pipeline.export.json_files import write_web_json
from chado_pipeline.export.tables import write_tables
from chado_pipeline.model import WebData

logger = structlog.get_logger()

EXPORT_FAMILIES = {
    "web-json": write_web_json,
    "fasta": write_fasta,
    "gff": write_gff,
    "misc": write_tables,
}


def write_all(web_data: WebData, config: PipelineConfig, output_dir: Path) -> dict[str, list[Path]]:
    """
    Write every artifact family under output_dir.

    Families are independent of each other; the first failure aborts the
    export with ExportError since a partial export is unusable.

    Returns:
        Family name -> list of written paths
    """
    output_dir = Path(output_dir)
    with writing(output_dir):
        output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for family, write_family in EXPORT_FAMILIES.items():
        written[family] = write_family(web_data, config, output_dir)
        logger.info("export_family_complete", family=family, file_count=len(written[family]))

    manifest_path = output_dir / "export.manifest.yaml"
    manifest = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "database_name": config.database_name,
        "export_prog_version": web_data.metadata.export_prog_version,
        "file_counts": {family: len(paths) for family, paths in written.items()},
        "statistics": {
            "gene_count": len(web_data.genes),
            "term_count": len(web_data.terms),
            "reference_count": len(web_data.references),
            "annotation_count": len(web_data.annotation_details),
        },
    }
    with writing(manifest_path):
        with open(manifest_path, "w") as f:
            yaml.dump(manifest, f, default_flow_style=False, sort_keys=False)

    return written
