from wungus.markdown.fence import FENCE, FenceState, count_fences, find_fence_opener, toggles_fence


def test_opening_lines_toggle():
    assert toggles_fence("```")
    assert toggles_fence("```python")
    assert toggles_fence("    ```js")


def test_other_lines_do_not_toggle():
    assert not toggles_fence("plain text")
    assert not toggles_fence("use ``` to open a block")
    assert not toggles_fence("``")
    assert not toggles_fence("")


def test_marker_pair_on_one_line_does_not_toggle():
    assert not toggles_fence("```print('x')```")
    assert toggles_fence("```a``` and ```")


def test_count_fences():
    assert count_fences("```py\nx\n```") == 2
    assert count_fences("no fences") == 0


def test_find_fence_opener_returns_stripped_line():
    lines = ["intro", "  ```cpp", "int x;", "int y;"]
    assert find_fence_opener(lines, 3) == "```cpp"


def test_find_fence_opener_picks_latest_block():
    lines = ["```bash", "ls", "```", "text", "```go", "fmt.Println()"]
    assert find_fence_opener(lines, 5) == "```go"


def test_find_fence_opener_defaults_to_bare_marker():
    assert find_fence_opener(["a", "b"], 2) == FENCE


def test_fence_state_tracks_parity():
    state = FenceState()
    assert state.feed("```ts") is True
    assert state.open is True
    assert state.feed("const a = 1;") is False
    assert state.open is True
    assert state.feed("```") is True
    assert state.open is False
