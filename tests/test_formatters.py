"""MarkdownV2 rendering and message batching."""

from src.database.models import Competition
from src.notifier.formatters import (
    BLOCK_SEPARATOR,
    build_header,
    build_messages,
    escape_markdown,
    format_competition,
    pack_blocks,
    trim_description,
)

BASE = "https://www.competehub.dev/competitions/"


def test_escape_markdown_reserved_characters():
    assert escape_markdown("C++ (beta)!") == "C\\+\\+ \\(beta\\)\\!"
    assert escape_markdown("a_b*c[d]~e`f>g#h=i|j{k}l.m\\n") == (
        "a\\_b\\*c\\[d\\]\\~e\\`f\\>g\\#h\\=i\\|j\\{k\\}l\\.m\\\\n"
    )
    assert escape_markdown("") == ""


def test_trim_description_boundary():
    assert trim_description("x" * 160) == "x" * 160
    assert trim_description("x" * 161) == "x" * 157 + "..."


def test_block_layout_with_all_fields():
    comp = Competition(
        id="ai-2026",
        title="AI Cup",
        description="Predict things.",
        prize="$10,000",
        time_left="3 天",
        source="Kaggle",
        tags=("NLP", "C++"),
    )

    block = format_competition(comp, BASE)

    assert block.splitlines() == [
        "• [AI Cup](https://www\\.competehub\\.dev/competitions/ai\\-2026)",
        "  来源: Kaggle",
        "  奖金: $10,000",
        "  截止: 3 天",
        "  标签: `NLP` `C\\+\\+`",
        "  简介: Predict things\\.",
    ]


def test_block_placeholders_for_missing_fields():
    block = format_competition(Competition(id="1", title="Bare"), BASE)

    assert "  来源: 未知" in block
    assert "  奖金: 未知" in block
    assert "  截止: 未知" in block
    assert "  标签: \\-" in block
    assert block.endswith("  简介: \\-")


def test_long_description_is_trimmed_before_escaping():
    block = format_competition(Competition(id="1", title="T", description="y" * 200), BASE)

    assert "  简介: " + "y" * 157 + "\\.\\.\\." in block


def test_single_batch_uses_plain_header():
    batches = pack_blocks(["one", "two"])

    assert len(batches) == 1
    assert batches[0].text == "发现 2 个新竞赛：\n\none\n\ntwo"
    assert (batches[0].start, batches[0].end, batches[0].size) == (1, 2, 2)


def test_batches_split_with_range_headers():
    blocks = ["a" * 40, "b" * 40, "c" * 40]
    limit = len(build_header(3, 1, 2)) + 40 + len(BLOCK_SEPARATOR) + 40

    batches = pack_blocks(blocks, limit)

    assert [b.text for b in batches] == [
        build_header(3, 1, 2) + "a" * 40 + BLOCK_SEPARATOR + "b" * 40,
        build_header(3, 3, 3) + "c" * 40,
    ]
    assert batches[0].text.startswith("发现 3 个新竞赛（1\\-2/3）：")


def test_batching_invariants_hold_for_many_records():
    competitions = [
        Competition(id=str(i), title=f"Competition {i}", description="d" * (i * 7 % 160))
        for i in range(60)
    ]
    limit = 700

    batches = pack_blocks([format_competition(c, BASE) for c in competitions], limit)

    assert len(batches) > 1
    assert all(len(b.text) <= limit for b in batches)
    assert sum(b.size for b in batches) == 60
    assert batches[0].start == 1
    assert batches[-1].end == 60
    for previous, current in zip(batches, batches[1:]):
        assert current.start == previous.end + 1
    for batch in batches:
        assert batch.text.startswith(build_header(60, batch.start, batch.end))


def test_oversized_block_is_sent_alone():
    batches = pack_blocks(["x" * 200, "short"], 50)

    assert [(b.start, b.end) for b in batches] == [(1, 1), (2, 2)]
    assert len(batches[0].text) > 50


def test_empty_input_builds_nothing():
    assert pack_blocks([]) == []
    assert build_messages([], BASE) == []


def test_build_messages_renders_every_record():
    messages = build_messages([Competition(id="1", title="One"), Competition(id="2", title="Two")], BASE)

    assert len(messages) == 1
    assert "[One](" in messages[0]
    assert "[Two](" in messages[0]
