from __future__ import annotations

from rich.console import Console

from educloud.services.storage import StoredFileEntry
from educloud.ui.modern import StorageOverviewUI, group_entries


def test_group_entries_nests_by_program_semester_subject() -> None:
    entries = [
        StoredFileEntry("b.pdf", "ingenieria/semestre-3/calculo-i/b.pdf"),
        StoredFileEntry("a.pdf", "ingenieria/semestre-3/calculo-i/a.pdf"),
        StoredFileEntry("c.pdf", "medicina/semestre-1/anatomia/c.pdf"),
        StoredFileEntry("loose.pdf", "loose.pdf"),
    ]

    programs = group_entries(entries)

    assert [program.name for program in programs] == ["(otros)", "ingenieria", "medicina"]
    ingenieria = programs[1]
    assert ingenieria.semesters == {"semestre-3": {"calculo-i": ["a.pdf", "b.pdf"]}}
    assert ingenieria.file_count == 2


def test_overview_reports_empty_storage() -> None:
    console = Console(record=True, width=100)

    StorageOverviewUI([], console=console).run()

    assert "No PDFs have been uploaded yet." in console.export_text()
