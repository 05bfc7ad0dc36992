import numpy as np
import pandas as pd
import yaml

import main
from denoisers.adaptive_median import AdaptiveMedianConfig, adaptive_median
from scripts.data_gen import add_salt_pepper, make_circles
from scripts.evaluation import filter_config, parameter_search, run_filter, save_run
from scripts.utils import load_grayscale, save_image


def make_item(size=48):
    clean = make_circles(size, num_circles=4)
    return {"name": "circles", "clean": clean,
            "noisy": add_salt_pepper(clean, amount=0.1, seed=5), "noise_type": "sp"}


def test_run_filter_does_not_touch_item():
    item = make_item()
    before = item["noisy"].copy()
    denoised, metrics, elapsed = run_filter(item, "adaptive_median", {"max_radius": 2})
    np.testing.assert_array_equal(item["noisy"], before)
    assert denoised.shape == before.shape
    assert set(metrics) == {"mse", "psnr", "ssim"}
    assert elapsed >= 0


def test_run_filter_unknown_method_returns_noisy_copy():
    item = make_item()
    denoised, _, _ = run_filter(item, 99)
    np.testing.assert_array_equal(denoised, item["noisy"])


def test_filter_config_picks_matching_type():
    assert filter_config(2, {"max_radius": 2}) == AdaptiveMedianConfig(max_radius=2)
    assert filter_config("alpha_trim", {"trim": 1}).trim == 1
    assert filter_config(99, {"trim": 1}) is None


def test_parameter_search_picks_from_grid():
    item = make_item()
    grid = {"initial_radius": [1, 2], "max_radius": [1, 3]}
    best, image, df = parameter_search(item, "adaptive_median", grid)
    # (2, 1) is rejected by the config and skipped
    assert len(df) == 3
    assert best in [{"initial_radius": 1, "max_radius": 1},
                    {"initial_radius": 1, "max_radius": 3},
                    {"initial_radius": 2, "max_radius": 3}]
    assert image.shape == item["clean"].shape
    assert df["score"].max() > 0


def test_save_run_merges_rows_with_different_params(tmp_path):
    item = make_item()
    denoised, _, _ = run_filter(item, 1)
    img_path, csv_path, record = save_run(item, denoised, 1, {"radius": 2},
                                          output_root=str(tmp_path))
    save_run(item, denoised, 2, {"max_radius": 3}, output_root=str(tmp_path), elapsed=0.5)
    assert img_path.name == "circles_alpha_trim.png"
    assert record["param_radius"] == 2
    np.testing.assert_array_equal(load_grayscale(img_path), denoised)
    df = pd.read_csv(csv_path)
    assert list(df["algorithm"]) == ["alpha_trim", "adaptive_median"]
    assert df.loc[0, "param_radius"] == 2 and pd.isna(df.loc[0, "param_max_radius"])
    assert df.loc[1, "param_max_radius"] == 3 and df.loc[1, "time_s"] == 0.5


def test_pipeline_on_input_files(tmp_path):
    src = add_salt_pepper(make_circles(32, num_circles=4), amount=0.1, seed=1)
    in_path = tmp_path / "photo.png"
    save_image(src, in_path, rgb=True)
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({
        "methods": ["adaptive_median", "bogus"],
        "adaptive_median": {"max_radius": 2},
    }))

    out_dir = tmp_path / "results"
    df = main.run_pipeline(str(out_dir), config_path=str(cfg_path), inputs=[str(in_path)])

    assert list(df["algorithm"]) == ["adaptive_median"]
    assert df.loc[0, "param_max_radius"] == 2
    out_img = load_grayscale(out_dir / "input" / "photo_adaptive_median.png")
    expected = src.copy()
    adaptive_median(expected, AdaptiveMedianConfig(max_radius=2))
    np.testing.assert_array_equal(out_img, expected)


def test_pipeline_rerun_replaces_summary(tmp_path):
    src = add_salt_pepper(make_circles(24, num_circles=3), amount=0.1, seed=2)
    in_path = tmp_path / "img.png"
    save_image(src, in_path)
    out_dir = tmp_path / "results"
    for _ in range(2):
        main.run_pipeline(str(out_dir), config_path=str(tmp_path / "missing.yaml"),
                          inputs=[str(in_path)])
    df = pd.read_csv(out_dir / "input" / "results_summary.csv")
    assert list(df["algorithm"]) == ["alpha_trim", "adaptive_median"]


def test_cli_method_override(tmp_path):
    src = np.full((16, 16), 90, dtype=np.uint8)
    in_path = tmp_path / "flat.png"
    save_image(src, in_path)
    out_dir = tmp_path / "out"
    df = main.main(["--input", str(in_path), "--method", "1",
                    "--config", str(tmp_path / "missing.yaml"), "--output-dir", str(out_dir)])
    assert list(df["algorithm"]) == ["alpha_trim"]
    np.testing.assert_array_equal(load_grayscale(out_dir / "input" / "flat_alpha_trim.png"), src)


def test_cli_tune_writes_search_results(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({
        "methods": ["alpha_trim"],
        "search": {"alpha_trim": {"radius": [1], "trim": [1, 2]}},
    }))
    clean = make_circles(32, num_circles=4)
    item = {"name": "c", "clean": clean, "noisy": add_salt_pepper(clean, 0.1, seed=3)}
    monkeypatch.setattr(main, "build_dataset", lambda demo, inputs=None: [item])
    best = main.main(["--demo", "--tune", "--config", str(cfg_path),
                      "--output-dir", str(tmp_path / "out")])
    assert best[("c", "alpha_trim")] in [{"radius": 1, "trim": 1}, {"radius": 1, "trim": 2}]
    assert len(pd.read_csv(tmp_path / "out" / "tuning_c_alpha_trim.csv")) == 2
