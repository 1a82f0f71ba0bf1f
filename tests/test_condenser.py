"""Tests for content condensation."""
from app.models.content import (
    DocumentSection,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    TableBlock,
)
from app.services.condenser import (
    condense,
    condense_sections,
    limit,
    score_sentence,
    select_top_sentences,
    split_sentences,
    summarize_paragraph,
)


def _sentence(length: int) -> str:
    """A sentence of exactly *length* chars with no digits or bonus words."""
    base = "The quiet river bends slowly around the old town walls and fields " * 3
    text = base[:length]
    if text.endswith(" "):
        text = text[:-1] + "s"
    return text


def test_paragraph_of_250_chars_keeps_two_longest_sentences_in_order():
    s1, s2, s3, s4 = _sentence(50), _sentence(70), _sentence(55), _sentence(68)
    paragraph = f"{s1}. {s2}. {s3}. {s4}."
    assert len(paragraph) == 250

    assert summarize_paragraph(paragraph) == [s2, s4]


def test_short_paragraph_kept_verbatim():
    assert summarize_paragraph("Revenue grew 12% in Q3 2024.") == ["Revenue grew 12% in Q3 2024."]


def test_long_paragraph_without_usable_sentences_is_truncated():
    text = "Ok. " * 40  # every fragment is too short to count as a sentence
    points = summarize_paragraph(text)
    assert len(points) == 1
    assert len(points[0]) <= 150


def test_bullets_never_exceed_150_chars():
    long_sentence = "Growth " + "continued across every region " * 10
    text = f"{long_sentence}. {long_sentence}. {long_sentence}."
    assert all(len(p) <= 150 for p in summarize_paragraph(text))


def test_digits_and_bonus_words_raise_score():
    plain = "Output rose across the region last season"
    assert score_sentence(plain) == len(plain)
    assert score_sentence(plain + " 5") == len(plain) + 2 + 20
    bonus = "Trade fell by ten percent in the key markets"
    assert score_sentence(bonus) == len(bonus) + 15 + 10


def test_split_sentences_drops_short_fragments():
    assert split_sentences("Yes. This sentence is long enough! Ok?") == ["This sentence is long enough"]


def test_select_top_sentences_prefers_earlier_on_ties():
    sentences = ["a" * 20, "b" * 20, "c" * 20]
    assert select_top_sentences(sentences, 2) == ["a" * 20, "b" * 20]


def test_condense_leaves_no_paragraphs():
    blocks = [
        HeadingBlock("Scope", 2),
        ParagraphBlock("Short paragraph text."),
        ListBlock(tuple(f"item {i}" for i in range(9))),
        TableBlock(("A",), (("x",),)),
    ]
    condensed = condense(blocks)
    assert not any(isinstance(b, ParagraphBlock) for b in condensed)
    assert condensed[0] == HeadingBlock("Scope", 2)
    assert condensed[1] == ListBlock(("Short paragraph text.",))
    assert len(condensed[2].items) == 5
    assert condensed[3] == blocks[3]


def test_each_bullet_becomes_its_own_list_block():
    s1, s2, s3 = _sentence(40), _sentence(60), _sentence(50)
    condensed = condense([ParagraphBlock(f"{s1}. {s2}. {s3}.")])
    assert condensed == [ListBlock((s2,)), ListBlock((s3,))]


def test_limit_keeps_headings_and_six_other_blocks():
    blocks = []
    for i in range(5):
        blocks.append(HeadingBlock(f"H{i}", 2))
        blocks.append(ListBlock((f"a{i}",)))
        blocks.append(ListBlock((f"b{i}",)))
    limited = limit(blocks)
    assert sum(isinstance(b, HeadingBlock) for b in limited) == 5
    assert sum(not isinstance(b, HeadingBlock) for b in limited) == 6
    # relative order preserved
    assert limited == [b for b in blocks if b in limited]


def test_condense_sections_returns_new_sections():
    section = DocumentSection("s", "S", blocks=tuple(ParagraphBlock(f"Point {i}.") for i in range(10)))
    (out,) = condense_sections([section])
    assert len(out.blocks) == 6
    assert section.blocks[0] == ParagraphBlock("Point 0.")
    assert out.id == "s" and out.heading == "S"
