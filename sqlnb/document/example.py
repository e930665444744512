"""A fully populated sample document, used as a format reference."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlnb.document.models import (
    Block,
    BlockContent,
    BlockMetadata,
    BlockRelationship,
    ColumnMetadata,
    DatabaseContext,
    DocumentContext,
    DocumentMetadata,
    ExecutionInfo,
    ExecutionStatus,
    NotebookDocument,
    RelationshipMetadata,
    Representations,
    TableMetadata,
)

_GROWTH_SQL = """\
SELECT DATE(created_at) AS date, COUNT(*) AS new_users
FROM users
WHERE created_at >= NOW() - INTERVAL '7 days'
GROUP BY DATE(created_at)
ORDER BY date;"""


def example_document(now: datetime | None = None) -> NotebookDocument:
    """Build the 'Weekly User Analysis' sample: intro, query, findings."""
    now = now or datetime.now(UTC)

    intro = Block(
        id="block-1",
        type="markdown",
        order=0,
        content=BlockContent(
            raw="# Weekly User Analysis\n\nThis notebook analyzes user activity and growth trends.",
            representations=Representations(
                html="<h1>Weekly User Analysis</h1><p>This notebook analyzes user activity and growth trends.</p>",
            ),
        ),
        metadata=BlockMetadata(
            labels=["heading", "documentation"],
            intent="introduce_analysis",
            description="Introduction to the weekly analysis",
            category="documentation",
            priority=5,
            created=now,
            updated=now,
        ),
    )
    query = Block(
        id="block-2",
        type="sql",
        order=1,
        content=BlockContent(raw=_GROWTH_SQL),
        metadata=BlockMetadata(
            labels=["query", "aggregation", "time-series"],
            intent="analyze_user_growth",
            description="Get daily new user counts for the past week",
            category="analysis",
            priority=4,
            execution=ExecutionInfo(
                executed=True,
                executed_at=now,
                execution_time_ms=245,
                result_count=7,
                status=ExecutionStatus.SUCCESS,
            ),
            created=now,
            updated=now,
        ),
        dependencies=[],
    )
    findings = Block(
        id="block-3",
        type="markdown",
        order=2,
        content=BlockContent(
            raw="## Key Findings\n\n- User growth increased by 15% this week\n- Peak signup day was Thursday",
        ),
        metadata=BlockMetadata(
            labels=["summary", "insights"],
            intent="summarize_findings",
            description="Summary of analysis results",
            category="documentation",
            priority=4,
            created=now,
            updated=now,
        ),
        references=["block-2"],
    )

    return NotebookDocument(
        id="example-notebook-001",
        title="Weekly User Analysis",
        description="Analyzing user activity and growth trends for the past week",
        blocks=[intro, query, findings],
        metadata=DocumentMetadata(
            created=now,
            updated=now,
            author="analyst@company.com",
            tags=["weekly-report", "user-analysis", "growth"],
            language="en",
            environment="production",
        ),
        context=DocumentContext(
            database=DatabaseContext(
                connection_id="prod-db-001",
                schema_name="public",
                tables=[
                    TableMetadata(
                        name="users",
                        schema_name="public",
                        columns=[
                            ColumnMetadata(name="id", type="uuid", nullable=False),
                            ColumnMetadata(name="email", type="varchar", nullable=False),
                            ColumnMetadata(name="created_at", type="timestamp", nullable=False),
                        ],
                    )
                ],
            ),
            variables={"report_date": "2025-01-14"},
        ),
        relationships=[
            BlockRelationship(
                id="rel-1",
                type="references",
                source_id="block-3",
                target_id="block-2",
                metadata=RelationshipMetadata(description="Summary references query results", strength=0.9),
            )
        ],
    )
