"""CLI commands for LEDGIS API."""

import mimetypes
from pathlib import Path

import click

from ledgis_api.db.session import SessionLocal, init_schema, upgrade_schema
from ledgis_api.ledger.schema import EvidenceSubmission
from ledgis_api.ledger.service import LedgerService
from ledgis_api.settings import get_settings
from ledgis_api.storage.repository import SqlBlockStore, SqlEvidenceStore


def _service(db) -> LedgerService:
    return LedgerService(SqlBlockStore(db), SqlEvidenceStore(db))


@click.group()
def cli():
    """LEDGIS API CLI."""
    pass


@cli.command("init-db")
def init_db():
    """Create tables and the genesis block."""
    click.echo("Initialising ledger...")
    init_schema()
    db = SessionLocal()
    try:
        genesis = _service(db).get_blocks()[0]
        click.echo(f"✓ Ledger ready (genesis {genesis.hash[:16]}...).")
    finally:
        db.close()


@cli.command()
@click.option("--revision", default="head", show_default=True, help="Alembic revision to upgrade to.")
def migrate(revision: str):
    """Apply schema migrations."""
    click.echo(f"Upgrading schema to {revision}...")
    upgrade_schema(revision)
    click.echo("✓ Schema up to date.")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--case-id", required=True, help="Case the evidence belongs to.")
@click.option("--description", required=True, help="What the evidence shows.")
@click.option("--node", "node_id", default=None, help="Committing node (defaults to DEFAULT_NODE_ID).")
def commit(path: Path, case_id: str, description: str, node_id: str):
    """Anchor a local file's metadata in a new block."""
    submission = EvidenceSubmission(
        case_id=case_id,
        file_name=path.name,
        file_size=path.stat().st_size,
        file_type=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
        description=description,
    )
    db = SessionLocal()
    try:
        block, record = _service(db).commit_evidence(
            submission, created_by=node_id or get_settings().default_node_id
        )
        click.echo(f"✓ {record.id} anchored in {block.id} ({block.hash[:16]}...)")
    finally:
        db.close()


@cli.command()
def verify():
    """Verify the chain."""
    db = SessionLocal()
    try:
        is_valid, error = _service(db).verify_chain()
    finally:
        db.close()

    if is_valid:
        click.echo("✓ Chain is valid.")
    else:
        click.echo(f"✗ Chain is invalid: {error}", err=True)
        raise SystemExit(1)


@cli.command()
def stats():
    """Show ledger statistics."""
    db = SessionLocal()
    try:
        ledger_stats = _service(db).get_stats()
    finally:
        db.close()

    click.echo(f"Blocks:   {ledger_stats.total_blocks}")
    click.echo(f"Evidence: {ledger_stats.total_evidence}")
    if ledger_stats.latest_block:
        click.echo(f"Latest:   {ledger_stats.latest_block.id} {ledger_stats.latest_block.hash[:16]}...")
    click.echo(f"Valid:    {'yes' if ledger_stats.is_valid else 'no'}")


@cli.command()
@click.argument("evidence_id")
def chunks(evidence_id: str):
    """Show the derived chunk layout of an evidence record."""
    db = SessionLocal()
    try:
        telemetry = _service(db).record_telemetry(evidence_id)
    finally:
        db.close()

    if telemetry is None:
        click.echo(f"✗ Evidence {evidence_id} not found", err=True)
        raise SystemExit(1)

    for chunk in telemetry.chunks:
        click.echo(
            f"#{chunk.index:<3} {chunk.hash_fragment}  {chunk.size_kb:>6} KB  "
            f"x{chunk.replicas}  {chunk.latency_ms:>4} ms  {chunk.integrity_state.value}"
        )
    click.echo(f"Nodes: {', '.join(str(index) for index in telemetry.assignment.node_indices)}")


if __name__ == "__main__":
    cli()
