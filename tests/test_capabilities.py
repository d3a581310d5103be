from __future__ import annotations

from initializr.capabilities import dependency_table, generate_capabilities, generate_table, parameter_table, type_table
from initializr.metadata import InitializrMetadata


def test_generate_table() -> None:
    table = generate_table([["Id", "Description"], ["a", "b"], ["long-id", None]])
    assert table == (
        "+---------+-------------+\n"
        "| Id      | Description |\n"
        "+---------+-------------+\n"
        "| a       | b           |\n"
        "| long-id |             |\n"
        "+---------+-------------+\n"
    )


def test_generate_table_wraps_long_cells() -> None:
    table = generate_table([["Id", "Text"], ["a", "one two three four"], ["b", "five"]], max_width=10)
    assert table.splitlines() == [
        "+----+------------+",
        "| Id | Text       |",
        "+----+------------+",
        "| a  | one two    |",
        "|    | three four |",
        "|    |            |",
        "| b  | five       |",
        "+----+------------+",
    ]


def test_dependency_table_is_sorted_by_id(metadata: InitializrMetadata) -> None:
    lines = dependency_table(metadata, max_width=200).splitlines()
    ids = [line.split("|")[1].strip() for line in lines[3:-1]]
    assert ids == sorted(d.id for d in metadata.all_dependencies)
    assert any("webflux" in line and ">=2.0.0.M1" in line for line in lines)


def test_type_table_marks_default(metadata: InitializrMetadata) -> None:
    table = type_table(metadata)
    assert "| maven-project * |" in table
    assert "build:gradle,format:project" in table


def test_parameter_table(metadata: InitializrMetadata) -> None:
    table = parameter_table(metadata)
    assert "| applicationName |" in table
    assert "DemoApplication" in table
    assert "no base dir" in table
    assert "spring boot version" in table


def test_generate_capabilities(metadata: InitializrMetadata) -> None:
    text = generate_capabilities(metadata)
    assert ":: Spring Initializr ::" in text
    assert "Project types (* denotes the default)" in text
    assert "| Parameter" in text
