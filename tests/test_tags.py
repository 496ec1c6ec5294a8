from forum.tags import find_unique_tags

def test_duplicates_collapse_in_first_seen_order():
    assert find_unique_tags("a, b, a") == ["a", "b"]
    assert find_unique_tags("B, a, b") == ["b", "a"]

def test_blank_parts_and_empty_input():
    assert find_unique_tags(" python ,, ,Rust ") == ["python", "rust"]
    assert find_unique_tags("") == []
    assert find_unique_tags(None) == []
