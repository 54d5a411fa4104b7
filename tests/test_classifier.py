from core.classifier import QueryKind, classify, find_greeting, normalize_query


def test_normalize_trims_and_lowercases():
    assert normalize_query("  What Is MALARIA?\n") == "what is malaria?"


def test_greeting_phrase_anywhere_in_message():
    assert classify("hello there") is QueryKind.GREETING
    assert classify("Good Morning, doctor") is QueryKind.GREETING
    assert classify("  HEY  ") is QueryKind.GREETING


def test_substantive_questions():
    assert classify("malaria") is QueryKind.SUBSTANTIVE
    assert classify("what is dengue") is QueryKind.SUBSTANTIVE
    assert classify("explain gout") is QueryKind.SUBSTANTIVE


def test_short_phrases_match_inside_words():
    # "chills" contains "hi"
    assert find_greeting("chills and fever") == "hi"
    assert classify("chills and fever") is QueryKind.GREETING


def test_custom_phrase_list():
    assert find_greeting("namaste doctor", phrases=["namaste"]) == "namaste"
    assert find_greeting("hello", phrases=["namaste"]) is None
