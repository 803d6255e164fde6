from __future__ import annotations

import pytest

from helpers import make_project
from livebuild.artifacts import ArtifactStore
from livebuild.build import BuildPipeline


@pytest.fixture
def config(tmp_path):
    return make_project(tmp_path)


@pytest.fixture
def store(config):
    store = ArtifactStore(config)
    store.ensure()
    return store


@pytest.fixture
def pipeline(config, store):
    return BuildPipeline(config, store)
