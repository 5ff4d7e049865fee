import numpy as np
import pytest

from petpvc.algorithms.iterative_yang import IterativeYang
from petpvc.callbacks import RegionMeansCallback, SaveIterationCallback


def test_region_means_csv(tmp_path, two_region_masks, two_region_observed, blur):
    output = tmp_path / "logs" / "means.csv"
    callback = RegionMeansCallback(output_file=output, interval=2)
    IterativeYang(two_region_observed, two_region_masks, blur).run(
        iterations=5, callbacks=[callback]
    )
    lines = output.read_text().splitlines()
    assert lines[0] == "iteration,region_0,region_1"
    assert [int(line.split(",")[0]) for line in lines[1:]] == [2, 4]
    values = np.loadtxt(output, delimiter=",", skiprows=1)
    assert np.allclose(values[:, 1:], [m for _, m in callback.history])


def test_save_iteration_schedule(tmp_path, two_region_masks, two_region_observed, blur):
    pytest.importorskip("nibabel")
    callback = SaveIterationCallback(tmp_path, interval=3, prefix="est", save_first_n=1)
    IterativeYang(two_region_observed, two_region_masks, blur).run(
        iterations=6, callbacks=[callback]
    )
    saved = sorted(p.name for p in tmp_path.glob("est_*.nii.gz"))
    assert saved == ["est_0001.nii.gz", "est_0003.nii.gz", "est_0006.nii.gz"]
