"""Tests for radolan.grid module."""

import numpy as np
import pyproj
import pytest

from radolan.grid import (
    CORNERS,
    CORNERS_DE1200_WGS84,
    Grid,
    GridType,
    Projection,
    SphericalProjection,
    WGS84Projection,
    corner_points,
    detect_grid,
    min_resolution,
)

# (lat, lon) -> (x, y) pixel coordinates
NATIONAL_PICTURE = [
    ((54.66218275, 1.900684377), (0, 0)),
    ((54.81884457, 15.88724008), (460, 0)),
    ((51.0, 9.0), (230, 230)),
    ((46.86029310, 3.481345126), (0, 460)),
    ((46.98044293, 14.73300934), (460, 460)),
]

NATIONAL = [
    ((54.5877, 2.0715), (0, 0)),
    ((54.7405, 15.7208), (900, 0)),
    ((51.0, 9.0), (450, 450)),
    ((46.9526, 3.5889), (0, 900)),
    ((47.0705, 14.6209), (900, 900)),
]

EXTENDED_NATIONAL = [
    ((55.5482, 3.0889), (0, 0)),
    ((55.5342, 17.1128), (900, 0)),
    ((51.0, 9.0), (370, 550)),
    ((46.1929, 4.6759), (0, 1100)),
    ((46.1827, 15.4801), (900, 1100)),
]

DE1200 = [
    ((55.86584289, 1.435612143), (0, 0)),
    ((55.84848692, 18.76728172), (1100, 0)),
    ((51.0, 9.0), (470, 600)),
    ((45.69587048, 3.551921296), (0, 1200)),
    ((45.68358331, 16.60186543), (1100, 1200)),
]

MIDDLE_EUROPEAN = [
    ((56.5423, -0.8654), (0, 0)),
    ((56.4505, 21.6986), (1400, 0)),
    ((51.0, 9.0), (600, 700)),
    ((43.9336, 2.3419), (0, 1500)),
    ((43.8736, 18.2536), (1400, 1500)),
]

DE1200_WGS84 = [
    ((55.86208711, 1.463301510), (0, 0), 1e-4),
    ((55.84543856, 18.73161645), (1100, 0), 1e-2),
    ((45.68460578, 16.58086935), (1100, 1200), 1e-4),
    ((45.69642538, 3.566994635), (0, 1200), 1e-2),
]

MUNICH = (48.173146, 11.546604)
BREMERHAVEN = (53.534366, 8.576135)
MUNICH_BREMERHAVEN_KM = 663.629945199998


def assert_translates(grid: Grid, table, scale: float = 1.0, tol: float = 0.1):
    for (lat, lon), (ex, ey) in table:
        x, y = grid.project(lat, lon)
        assert np.hypot(x - ex * scale, y - ey * scale) < tol, (lat, lon, x, y)


class TestMinResolution:
    """Tests for min_resolution function."""

    def test_bisect(self):
        """Test bisecting even edges."""
        assert min_resolution(900, 900) == (225, 225)
        assert min_resolution(1100, 1200) == (275, 300)
        assert min_resolution(1400, 1500) == (350, 375)

    def test_odd_edge(self):
        """Test that an odd edge stops bisection."""
        assert min_resolution(3, 4) == (3, 4)

    def test_zero(self):
        """Test that zero dimensions are returned unchanged."""
        assert min_resolution(0, 5) == (0, 5)


class TestDetectGrid:
    """Tests for detect_grid function."""

    @pytest.mark.parametrize("n", [900, 450, 225])
    def test_national(self, n):
        """Test the national grid at several resolutions."""
        assert detect_grid(n, n) is GridType.NATIONAL

    @pytest.mark.parametrize("n", [920, 460])
    def test_national_picture(self, n):
        """Test the national picture grid."""
        assert detect_grid(n, n) is GridType.NATIONAL_PICTURE

    @pytest.mark.parametrize("dims", [(900, 1100), (450, 550)])
    def test_extended_national(self, dims):
        """Test the extended national grid."""
        assert detect_grid(*dims) is GridType.EXTENDED_NATIONAL

    def test_de1200(self):
        """Test the DE1200 grid."""
        assert detect_grid(1100, 1200) is GridType.DE1200

    @pytest.mark.parametrize("dims", [(1400, 1500), (700, 750)])
    def test_middle_european(self, dims):
        """Test the middle-European grid."""
        assert detect_grid(*dims) is GridType.MIDDLE_EUROPEAN

    @pytest.mark.parametrize("dims", [(200, 200), (1, 1), (0, 0), (900, 901)])
    def test_unknown(self, dims):
        """Test that other dimensions are unknown."""
        assert detect_grid(*dims) is GridType.UNKNOWN


class TestCornerPoints:
    """Tests for corner_points function."""

    def test_known_grid(self):
        """Test corners of a spherical grid."""
        assert corner_points(GridType.NATIONAL) == CORNERS[GridType.NATIONAL]

    def test_de1200_versions(self):
        """Test that format version 5 switches the DE1200 corners."""
        assert corner_points(GridType.DE1200, 3) == CORNERS[GridType.DE1200]
        assert corner_points(GridType.DE1200, 5) == CORNERS_DE1200_WGS84

    def test_unknown(self):
        """Test that unknown grids have no corners."""
        assert corner_points(GridType.UNKNOWN) is None


class TestProjection:
    """Tests for projection calibration."""

    def test_calibrated_origin(self):
        """Test that the top-left corner maps to the pixel origin."""
        top_left, bottom_right = CORNERS[GridType.NATIONAL]
        proj = SphericalProjection.calibrate(top_left, bottom_right, nx=900, ny=900)

        x, y = proj.project(*top_left)
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(0.0, abs=1e-9)

        x, y = proj.project(*bottom_right)
        assert x == pytest.approx(900.0, abs=1e-9)
        assert y == pytest.approx(900.0, abs=1e-9)

    def test_resolution(self):
        """Test that calibrated resolution is about 1 km/px."""
        grid = Grid(900, 900)
        assert grid.rx == pytest.approx(1.0, abs=1e-2)
        assert grid.ry == pytest.approx(1.0, abs=1e-2)

    def test_base_transform_not_implemented(self):
        """Test that the base projection has no forward formula."""
        with pytest.raises(NotImplementedError):
            Projection().project(51.0, 9.0)

    def test_vectorized(self):
        """Test projecting arrays of coordinates."""
        grid = Grid(900, 900)
        lats = np.array([54.5877, 47.0705])
        lons = np.array([2.0715, 14.6209])
        x, y = grid.project(lats, lons)
        np.testing.assert_allclose(x, [0, 900], atol=0.1)
        np.testing.assert_allclose(y, [0, 900], atol=0.1)


class TestTranslation:
    """Tests for geographic to pixel translation of the known grids."""

    def test_national_picture(self):
        """Test the national picture grid."""
        assert_translates(Grid(460, 460), NATIONAL_PICTURE)

    def test_national(self):
        """Test the national grid."""
        assert_translates(Grid(900, 900), NATIONAL)

    def test_national_half(self):
        """Test the national grid at half resolution."""
        assert_translates(Grid(450, 450), NATIONAL, scale=0.5)

    def test_extended_national(self):
        """Test the extended national grid."""
        assert_translates(Grid(900, 1100), EXTENDED_NATIONAL)

    def test_de1200_spherical(self):
        """Test the DE1200 grid before format version 5."""
        grid = Grid(1100, 1200, format_version=3)
        assert isinstance(grid.projection, SphericalProjection)
        assert_translates(grid, DE1200)

    def test_middle_european(self):
        """Test the middle-European grid."""
        assert_translates(Grid(1400, 1500), MIDDLE_EUROPEAN)

    def test_de1200_wgs84(self):
        """Test the DE1200 grid on the WGS84 ellipsoid."""
        grid = Grid(1100, 1200, format_version=5)
        assert isinstance(grid.projection, WGS84Projection)

        for (lat, lon), (ex, ey), tol in DE1200_WGS84:
            x, y = grid.project(lat, lon)
            assert x == pytest.approx(ex, abs=tol)
            assert y == pytest.approx(ey, abs=tol)


class TestDistance:
    """Tests for distances measured on the projected grids."""

    @pytest.mark.parametrize(
        "dims",
        [
            (900, 900),
            (450, 450),
            (225, 225),
            (900, 1100),
            (450, 550),
            (1400, 1500),
            (700, 750),
        ],
    )
    def test_munich_bremerhaven(self, dims):
        """Test that resolution scaling preserves distances."""
        grid = Grid(*dims, format_version=3)

        x0, y0 = grid.project(*MUNICH)
        x1, y1 = grid.project(*BREMERHAVEN)
        dist = np.hypot((x1 - x0) * grid.rx, (y1 - y0) * grid.ry)

        assert dist == pytest.approx(MUNICH_BREMERHAVEN_KM, abs=1e-5)


class TestCRS:
    """Tests for the pyproj equivalent of the forward formulas."""

    @pytest.mark.parametrize(
        "proj",
        [SphericalProjection(), WGS84Projection()],
        ids=["spherical", "wgs84"],
    )
    def test_matches_transform(self, proj):
        """Test that the CRS reproduces the raw forward formula."""
        crs = proj.crs
        transformer = pyproj.Transformer.from_crs(
            crs.geodetic_crs, crs, always_xy=True
        )

        for lat, lon in [MUNICH, BREMERHAVEN, (51.0, 9.0), (55.0, 2.0)]:
            east, north = transformer.transform(lon, lat)
            x, y = proj.transform(lat, lon)
            assert east / 1000 == pytest.approx(x, abs=1e-2)
            assert -north / 1000 == pytest.approx(y, abs=1e-2)

    def test_unproject_round_trip(self):
        """Test that unproject inverts project."""
        grid = Grid(900, 900)
        lat, lon = grid.projection.unproject(450.0, 450.0)
        assert lat == pytest.approx(51.0, abs=1e-2)
        assert lon == pytest.approx(9.0, abs=1e-2)

    def test_unknown_grid_has_no_crs(self):
        """Test that unknown grids have no CRS."""
        assert Grid(200, 200).crs is None


class TestGrid:
    """Tests for Grid class."""

    def test_unknown_grid(self):
        """Test that unknown grids project to NaN."""
        grid = Grid(200, 200)
        assert grid.kind is GridType.UNKNOWN
        assert not grid.has_projection
        assert np.isnan(grid.rx) and np.isnan(grid.ry)

        x, y = grid.project(51.0, 9.0)
        assert np.isnan(x) and np.isnan(y)

    def test_unknown_grid_arrays(self):
        """Test that NaN projections keep the input shape."""
        x, y = Grid(200, 200).project(np.zeros(3), np.zeros(3))
        assert x.shape == (3,)
        assert np.isnan(y).all()

    def test_coords_without_projection(self):
        """Test pixel coordinates of an unknown grid."""
        coords = Grid(4, 3).coords
        np.testing.assert_array_equal(coords["x"], [0.5, 1.5, 2.5, 3.5])
        np.testing.assert_array_equal(coords["y"], [0.5, 1.5, 2.5])
        assert "lat" not in coords

    def test_coords_with_projection(self):
        """Test that lat/lon coordinates are pixel centers."""
        grid = Grid(225, 225)
        coords = grid.coords

        dims, lats = coords["lat"]
        _, lons = coords["lon"]
        assert dims == ("y", "x")
        assert lats.shape == (225, 225)

        x, y = grid.project(lats, lons)
        xx, yy = np.meshgrid(coords["x"], coords["y"])
        np.testing.assert_allclose(x, xx, atol=1e-4)
        np.testing.assert_allclose(y, yy, atol=1e-4)

    def test_coord_attrs(self):
        """Test coordinate attributes."""
        assert "lat" in Grid(900, 900).get_coord_attrs()
        assert "lat" not in Grid(200, 200).get_coord_attrs()

    def test_equality(self):
        """Test grid equality."""
        assert Grid(900, 900) == Grid(900, 900)
        assert Grid(900, 900) != Grid(450, 450)
        assert hash(Grid(900, 900)) == hash(Grid(900, 900))

    def test_repr(self):
        """Test string representation."""
        assert "national" in repr(Grid(900, 900))
