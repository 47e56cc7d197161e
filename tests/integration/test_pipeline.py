import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from now_pipeline import io, plots, qc
from now_pipeline.pipeline import PipelineResult, run_pipeline
from now_pipeline.rotation import identity_rotation
from tests.conftest import make_raw


@pytest.fixture
def inputs(tmp_path):
    rows = []
    sid = 100
    # West, Tortonian: 7 identified species
    for i in range(7):
        rows.append((1 + i, sid, "Carnivora", "Felidae", "Felis", f"sp{i}a", 8, 10, 5, 2 + i * 0.5))
        sid += 1
    # West, Tortonian: unidentified
    rows.append((1, sid, "Carnivora", "Felidae", "Felis", "indet.", 8, 10, 5, 2)); sid += 1
    # East, Tortonian: 3 species
    for i in range(3):
        rows.append((20, sid, "Rodentia", "Muridae", "Mus", f"m{i}", 9, 9, 5, 15)); sid += 1
    # Outside every region
    rows.append((30, sid, "Rodentia", "Muridae", "Mus", "far", 9, 9, 50, 50)); sid += 1
    # No stage (age 1)
    rows.append((31, sid, "Rodentia", "Muridae", "Mus", "young", 0.5, 1.5, 5, 5)); sid += 1
    # No coordinates
    rows.append((32, sid, "Rodentia", "Muridae", "Mus", "lost", 9, 9, None, None)); sid += 1

    occ_path = tmp_path / "now_export.tsv"
    make_raw(rows).to_csv(occ_path, sep="\t", index=False)

    regions = gpd.GeoDataFrame(
        {"Region": ["West", "East"], "MapID": [1, 2]},
        geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10)],
        crs="EPSG:4326",
    )
    regions_path = tmp_path / "regions.geojson"
    regions.to_file(regions_path, driver="GeoJSON")

    return occ_path, regions_path


def test_run_pipeline_end_to_end(tmp_path, inputs):
    occ_path, regions_path = inputs
    out_dir = tmp_path / "processed"

    result = run_pipeline(
        occ_path,
        regions_path,
        rotate=identity_rotation,
        grid_kind="square",
        cell_size=5,
        orders=[],
        min_taxa=5,
        sep="\t",
        output_path=out_dir / "occ.parquet",
        summary_path=out_dir / "summary.csv",
        grid_path=out_dir / "grid.geojson",
    )

    assert isinstance(result, PipelineResult)
    occ = result.occurrences
    assert len(occ) == 7
    assert set(occ["region"]) == {"West"}
    assert set(occ["period"]) == {"Tortonian"}
    assert (occ["map_id"] == 1).all()
    assert occ["period_midpoint"].tolist() == pytest.approx([9.4] * 7)
    assert occ["grid_id"].notna().all()
    assert (occ["paleo_latitude"] == occ["latitude"]).all()

    summary = result.summary.set_index(["region", "period"])
    assert summary.loc[("West", "Tortonian"), "n_taxa"] == 7
    assert summary.loc[("East", "Tortonian"), "n_taxa"] == 3
    assert not summary.loc[("East", "Tortonian"), "kept"]

    assert (out_dir / "occ.parquet").exists()
    assert (out_dir / "summary.csv").exists()
    assert (out_dir / "grid.geojson").exists()
    saved = io.load_parquet(out_dir / "occ.parquet")
    assert len(saved) == 7

    assert any(line.startswith("[sampling]") for line in result.log)


def test_pipeline_outputs_pass_qc(tmp_path, inputs):
    occ_path, regions_path = inputs

    result = run_pipeline(occ_path, regions_path, cell_size=5, orders=[], min_taxa=5, sep="\t")

    assert qc.check_unique_ids(result.occurrences).startswith("✓")
    assert qc.check_age_order(result.occurrences).startswith("✓")
    assert qc.check_period_labels(result.occurrences).startswith("✓")
    assert qc.check_crs(result.occurrences).startswith("✓")
    # every identified occurrence with a grid cell is counted exactly once
    assert result.grid["n_occurrences"].sum() == 11
    assert qc.check_grid_counts(result.points, result.grid) == "✓ Grid counts match: 11 total"
    assert len(result.points) >= len(result.occurrences)


def test_pipeline_hex_grid(tmp_path, inputs):
    occ_path, regions_path = inputs
    result = run_pipeline(occ_path, regions_path, grid_kind="hex", cell_size=5, orders=[], min_taxa=5, sep="\t")
    assert result.occurrences["grid_id"].notna().all()


def test_pipeline_missing_input(tmp_path, inputs):
    _, regions_path = inputs
    with pytest.raises(FileNotFoundError):
        run_pipeline(tmp_path / "missing.tsv", regions_path, sep="\t")


def test_diagnostic_plots_are_written(tmp_path, inputs):
    occ_path, regions_path = inputs
    result = run_pipeline(occ_path, regions_path, cell_size=5, orders=[], min_taxa=5, sep="\t")
    fig_dir = tmp_path / "figures"

    written = [
        plots.plot_period_counts(result.occurrences, fig_dir / "periods.png"),
        plots.plot_occurrence_map(result.occurrences, result.regions, fig_dir / "map.png"),
        plots.plot_region_period_heatmap(result.summary, fig_dir / "heatmap.png", min_taxa=5),
        plots.plot_grid_richness(result.grid, fig_dir / "grid.png"),
        plots.plot_region_period_heatmap(result.summary, fig_dir / "empty.png", min_taxa=100),
    ]

    for path in written:
        assert path.exists()
        assert path.stat().st_size > 0
