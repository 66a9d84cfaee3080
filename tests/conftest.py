import pytest
from sklearn.model_selection import train_test_split

from wdbc_study.data.loader import DatasetLoader, bundled_frame


@pytest.fixture(scope="session")
def dataset():
    return DatasetLoader().load("sklearn")


@pytest.fixture
def raw_csv(tmp_path):
    path = tmp_path / "data.csv"
    bundled_frame().to_csv(path, index=False)
    return path


@pytest.fixture(scope="session")
def small_df(dataset):
    """Stratified 80-row subsample, small enough to run every LOOCV fold quickly."""
    df = dataset["df"]
    sample, _ = train_test_split(
        df, train_size=80, random_state=7, stratify=df["diagnosis"].astype(str),
    )
    return sample.sort_index()
