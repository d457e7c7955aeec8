from __future__ import annotations

import math
from pathlib import Path

import pytest

import dxfgeom.render as render_module
from dxfgeom.entity import Drawing, Entity, Vertex
from dxfgeom.primitives import Arrow, PointMarker, Polyline, TextQuad, Triangles
from dxfgeom.scene import Scene

from _dxf_helpers import document, dxf_text, line


class _FakeFigure:
    pass


class _FakePlt:
    def __init__(self, ax) -> None:
        self._ax = ax
        self.shown = False

    def subplots(self):
        return _FakeFigure(), self._ax

    def show(self) -> None:
        self.shown = True


class _FakeAx:
    def __init__(self, xlim=(0.0, 10.0), ylim=(0.0, 4.0)) -> None:
        self.lines: list[tuple] = []
        self.points: list[tuple] = []
        self.texts: list[tuple] = []
        self.title: str | None = None
        self.aspect: str | None = None
        self._xlim = xlim
        self._ylim = ylim

    def plot(self, xs, ys, **kwargs) -> None:
        self.lines.append((xs, ys, kwargs))

    def scatter(self, xs, ys, **kwargs) -> None:
        self.points.append((xs, ys, kwargs))

    def text(self, x, y, text, **kwargs) -> None:
        self.texts.append((x, y, text, kwargs))

    def autoscale(self, _enabled: bool) -> None:
        return None

    def set_title(self, title: str) -> None:
        self.title = title

    def set_aspect(self, aspect: str, adjustable: str = "box") -> None:
        self.aspect = aspect

    def get_xlim(self):
        return self._xlim

    def get_ylim(self):
        return self._ylim

    def set_xlim(self, low, high) -> None:
        self._xlim = (low, high)

    def set_ylim(self, low, high) -> None:
        self._ylim = (low, high)


def _scene() -> Scene:
    return Scene(
        primitives=[
            Polyline(points=((0.0, 0.0), (1.0, 1.0)), color="#ff0000"),
            Polyline(points=((0.0, 0.0), (2.0, 0.0)), dash_pattern=(1.0, -1.0)),
            Triangles(triangles=(((0.0, 0.0), (1.0, 0.0), (0.0, 1.0)),), color="#00ff00"),
            Arrow(tip=(1.0, 0.0), base1=(0.0, 0.5), base2=(0.0, -0.5)),
            PointMarker(position=(3.0, 4.0), size=2.0),
            TextQuad(text="A", position=(5.0, 5.0), height=2.0, rotation=math.pi / 2, valign="middle"),
            TextQuad(text="1", position=(6.0, 6.0), height=2.0, stacked_top="1", stacked_bottom="2"),
        ]
    )


def test_plot_scene_draws_every_primitive_kind(monkeypatch) -> None:
    ax = _FakeAx()
    fills: list[tuple] = []
    monkeypatch.setattr(render_module, "_require_matplotlib", lambda: _FakePlt(ax))
    monkeypatch.setattr(render_module, "_fill", lambda _ax, points, color: fills.append((tuple(points), color)))

    result = render_module.plot_scene(_scene(), ax=ax, show=False, equal=False, title="demo")

    assert result is ax
    assert ax.title == "demo"
    assert [kwargs["linestyle"] for _, _, kwargs in ax.lines] == ["-", "--"]
    assert ax.lines[0][0] == [0.0, 1.0]
    assert ax.lines[0][2]["color"] == "#ff0000"
    assert [color for _, color in fills] == ["#00ff00", "#000000"]
    assert ax.points == [([3.0], [4.0], {"s": 2.0, "color": "#000000"})]
    (x, y, text, kwargs), (_, _, stacked, _) = ax.texts
    assert (x, y, text) == (5.0, 5.0, "A")
    assert kwargs["rotation"] == pytest.approx(90.0)
    assert kwargs["va"] == "center"
    assert stacked == "1 1/2"


def test_plot_creates_axes_and_shows(monkeypatch) -> None:
    ax = _FakeAx()
    plt = _FakePlt(ax)
    monkeypatch.setattr(render_module, "_require_matplotlib", lambda: plt)

    result = render_module.plot_scene(Scene(), show=True)

    assert result is ax
    assert plt.shown is True
    assert ax.aspect == "equal"


def test_plot_accepts_drawing_and_path(monkeypatch, tmp_path: Path) -> None:
    ax = _FakeAx()
    monkeypatch.setattr(render_module, "_require_matplotlib", lambda: _FakePlt(ax))
    drawing = Drawing(entities=(Entity("LINE", 1, {"vertices": [Vertex(0, 0), Vertex(1, 0)]}),))
    path = tmp_path / "one.dxf"
    path.write_text(dxf_text(document(line(0, 0, 2, 2))), encoding="utf-8")

    render_module.plot(drawing, ax=ax, show=False, equal=False)
    render_module.plot(path, ax=ax, show=False, equal=False)
    render_module.plot(str(path), ax=ax, show=False, equal=False)

    assert len(ax.lines) == 3


def test_plot_rejects_other_targets() -> None:
    with pytest.raises(TypeError, match="expects a path, Drawing, or Scene"):
        render_module.plot(42, show=False)


def test_apply_equal_limits_squares_the_view() -> None:
    ax = _FakeAx(xlim=(0.0, 10.0), ylim=(0.0, 4.0))

    render_module._apply_equal_limits(ax)

    assert ax.get_xlim() == (0.0, 10.0)
    assert ax.get_ylim() == (-3.0, 7.0)


def test_apply_equal_limits_ignores_empty_view() -> None:
    ax = _FakeAx(xlim=(1.0, 1.0), ylim=(0.0, 4.0))
    render_module._apply_equal_limits(ax)
    assert ax.get_xlim() == (1.0, 1.0)


def test_plot_with_matplotlib() -> None:
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")

    ax = render_module.plot_scene(_scene(), show=False)

    assert len(ax.lines) >= 2
    assert len(ax.patches) == 2
    assert len(ax.texts) == 2
