import pytest

from planners.gridmap import BoundsError, FormatError, GridMap, Terrain, load_map


def make_map(height, width, body, first="type octile"):
    return f"{first}\nheight {height}\nwidth {width}\nmap\n{body}"


def test_all_terrain_3x2():
    g = GridMap.from_text(make_map(2, 3, "...\n...\n"))
    assert (g.width, g.height, g.cell_count) == (3, 2, 6)
    assert all(g.tile_index(i) is Terrain.TERRAIN for i in range(6))
    assert g.source == "<string>"


def test_every_tile_character_decodes():
    g = GridMap.from_text(make_map(1, 7, ".G@OTSW"))
    assert [g.tile(x, 0) for x in range(7)] == [
        Terrain.TERRAIN,
        Terrain.TERRAIN,
        Terrain.OUT_OF_BOUNDS,
        Terrain.OUT_OF_BOUNDS,
        Terrain.TREE,
        Terrain.SWAMP,
        Terrain.WATER,
    ]


def test_row_major_indexing_and_whitespace_separated_tokens():
    # tokens may be space separated and wrap lines arbitrarily
    g = GridMap.from_text(make_map(2, 3, ". T W\nS\n@ .\n"))
    assert g.tile(1, 0) is Terrain.TREE
    assert g.tile(0, 1) is Terrain.SWAMP
    assert g.tile(2, 1) is Terrain.TERRAIN
    assert g.tile_index(1 + 1 * 3) is Terrain.OUT_OF_BOUNDS
    assert g.index_of(2, 1) == 5 and g.cell_of(5) == (2, 1)
    assert [len(r) for r in g.rows()] == [3, 3]
    assert g.count(Terrain.TERRAIN) == 2


def test_header_fields_may_share_a_line_or_span_lines():
    g = GridMap.from_text("type octile\nheight\n2 width 2\nmap\n....")
    assert (g.width, g.height) == (2, 2)


def test_trailing_text_after_width_is_discarded():
    g = GridMap.from_text("type octile\nheight 1\nwidth 2 junk here\nmap\n.W")
    assert g.tile(1, 0) is Terrain.WATER


def test_too_few_tiles_fails():
    with pytest.raises(FormatError):
        GridMap.from_text(make_map(2, 2, "..."))


def test_too_many_tiles_fails():
    with pytest.raises(FormatError):
        GridMap.from_text(make_map(2, 2, "....."))


def test_unknown_tile_character_fails():
    with pytest.raises(FormatError, match="'Z'"):
        GridMap.from_text(make_map(2, 2, "..Z."))


@pytest.mark.parametrize(
    "text",
    [
        "",
        "type octile\n",
        "type octile\nheight 2\n",
        "type octile\nheight x\nwidth 2\nmap\n....",
        "type octile\nheight 2\nwidth -2\nmap\n....",
        "type octile\nheight 0\nwidth 2\nmap\n",
        "type octile\nheight 2\nwidth 0\nmap\n",
        "type octile\nheight 2\nwidth 2147483647\nmap\n....",
        "type octile\nheight 2147483647\nwidth 2\nmap\n....",
        "type octile\nheight 2\nwidth two\nmap\n....",
        "type octile\nheight 2\nwidth 2",  # nothing after the width value
        "type octile\nheight 2\nwidth 2\n",  # no map marker line
    ],
)
def test_malformed_header_fails(text):
    with pytest.raises(FormatError):
        GridMap.from_text(text)


def test_format_error_is_a_value_error():
    assert issubclass(FormatError, ValueError)
    assert issubclass(BoundsError, IndexError)


def test_out_of_range_queries_raise_bounds_error():
    g = GridMap.from_text(make_map(2, 3, "......"))
    for x, y in [(-1, 0), (3, 0), (0, 2), (0, -1)]:
        with pytest.raises(BoundsError):
            g.tile(x, y)
    with pytest.raises(BoundsError):
        g.tile_index(6)
    with pytest.raises(BoundsError):
        g.tile_index(-1)
    assert not g.in_bounds(3, 1) and g.in_bounds(2, 1)


def test_load_from_file_records_source(tmp_path):
    p = tmp_path / "tiny.map"
    p.write_text(make_map(1, 1, "W\n"))
    g = load_map(p)
    assert g.source == str(p)
    assert g.tile(0, 0) is Terrain.WATER


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        load_map(tmp_path / "nope.map")


def test_bundled_demo_map_loads():
    g = load_map("maps/demo.map")
    assert (g.width, g.height) == (24, 12)
    assert g.tile(0, 0) is Terrain.OUT_OF_BOUNDS
