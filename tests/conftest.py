"""Pytest configuration and fixtures."""

import stat

import pytest

from verifix.config import Settings
from verifix.models import UpdateConfig, UpdatedDependency, UpdateRequest

SAMPLE_METADATA = """<?xml version="1.0" encoding="UTF-8"?>
<verification-metadata xmlns="https://schema.gradle.org/dependency-verification">
   <configuration>
      <verify-metadata>true</verify-metadata>
      <verify-signatures>false</verify-signatures>
   </configuration>
   <components>
      <component group="com.google.guava" name="guava" version="31.1-jre">
         <artifact name="guava-31.1-jre.jar">
            <md5 value="e3d0e7ba2d8b7e2b3a5c1e7dfb7b5c1a" origin="Generated by Gradle"/>
            <sha256 value="a42edc9cab792e39fe39bb94f3fca655ed157ff87a8af78e1d6ba5b07c4a00ab" origin="Generated by Gradle"/>
         </artifact>
      </component>
   </components>
</verification-metadata>
"""


@pytest.fixture
def sample_metadata():
    """Verification metadata using sha256 and md5 checksums."""
    return SAMPLE_METADATA


@pytest.fixture
def project_dir(tmp_path, sample_metadata):
    """Gradle project with a wrapper and verification metadata."""
    (tmp_path / "gradle").mkdir()
    (tmp_path / "gradle" / "verification-metadata.xml").write_text(sample_metadata)
    (tmp_path / "build.gradle").write_text("dependencies { implementation 'com.google.guava:guava:32.0.0-jre' }\n")
    gradlew = tmp_path / "gradlew"
    gradlew.write_text("#!/bin/sh\necho gradle\n")
    gradlew.chmod(stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH)
    return tmp_path


@pytest.fixture
def settings(project_dir):
    """Settings pointing at the sample project."""
    return Settings(local_dir=project_dir)


@pytest.fixture
def update_request():
    """Update of guava in build.gradle."""
    return UpdateRequest(
        package_file_name="build.gradle",
        new_package_file_content="dependencies { implementation 'com.google.guava:guava:32.0.0-jre' }\n",
        updated_deps=[
            UpdatedDependency(dep_name="com.google.guava:guava", current_value="31.1-jre", new_value="32.0.0-jre"),
        ],
        config=UpdateConfig(current_value="7.4.2"),
    )
