from grading.marshal import marshal


def test_empty_input_gives_no_arguments():
    assert marshal("") == []


def test_json_array_is_one_argument():
    assert marshal("[1, 2, 3, 4]") == [[1, 2, 3, 4]]


def test_json_object_is_one_argument():
    assert marshal('{"a": 1}') == [{"a": 1}]


def test_malformed_json_falls_back_to_raw_text():
    assert marshal("[1, 2") == ["[1, 2"]


def test_scalar_is_passed_unchanged():
    assert marshal("15") == ["15"]
    assert marshal("hello") == ["hello"]


def test_whitespace_is_not_trimmed():
    assert marshal(" 1, 2") == [" 1, 2"]
