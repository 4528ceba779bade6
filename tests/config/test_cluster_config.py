"""
Cluster configuration tests.

Tests *-site.xml parsing, directory loading, cluster matching and storage
option derivation per protocol.
"""

import pytest

from jobcache.config import (
    ClusterConfiguration,
    load_cluster_configuration,
    load_cluster_configurations,
    read_site_file,
)
from jobcache.exceptions import ConfigurationError
from tests.factories.file_factories import make_file, make_site_file


class TestReadSiteFile:
    """Hadoop XML properties become a flat dict."""

    def test_properties(self, tmp_path):
        path = make_site_file(tmp_path, "core-site.xml", {
            "fs.defaultFS": "hdfs://nn:8020",
            "dfs.replication": "3",
        })
        assert read_site_file(path) == {"fs.defaultFS": "hdfs://nn:8020", "dfs.replication": "3"}

    def test_malformed_xml(self, tmp_path):
        path = make_file(tmp_path, "core-site.xml", b"<configuration><property>")
        with pytest.raises(ConfigurationError, match="Malformed"):
            read_site_file(path)

    def test_nameless_property_ignored(self, tmp_path):
        path = make_file(
            tmp_path, "core-site.xml",
            b"<configuration><property><value>x</value></property></configuration>",
        )
        assert read_site_file(path) == {}


class TestLoadClusterConfiguration:
    """One directory, one cluster."""

    def test_default_fs_and_name(self, tmp_path):
        conf_dir = tmp_path / "ingest"
        make_site_file(conf_dir, "core-site.xml", {"fs.defaultFS": "hdfs://ingest-nn:8020"})

        cluster = load_cluster_configuration(str(conf_dir))

        assert cluster.name == "ingest"
        assert cluster.default_fs == "hdfs://ingest-nn:8020"
        assert cluster.protocol == "hdfs"
        assert cluster.authority == "ingest-nn:8020"

    def test_legacy_default_fs_key(self, tmp_path):
        make_site_file(tmp_path, "core-site.xml", {"fs.default.name": "hdfs://old-nn:9000"})
        assert load_cluster_configuration(str(tmp_path)).default_fs == "hdfs://old-nn:9000"

    def test_no_default_fs_is_local(self, tmp_path):
        make_site_file(tmp_path, "core-site.xml", {"io.file.buffer.size": "65536"})
        assert load_cluster_configuration(str(tmp_path)).default_fs == "file:///"

    def test_hdfs_site_overrides_core_site(self, tmp_path):
        make_site_file(tmp_path, "core-site.xml", {"dfs.replication": "1"})
        make_site_file(tmp_path, "hdfs-site.xml", {"dfs.replication": "3"})
        assert load_cluster_configuration(str(tmp_path)).properties["dfs.replication"] == "3"

    def test_other_site_files_read(self, tmp_path):
        make_site_file(tmp_path, "yarn-site.xml", {"yarn.resourcemanager.hostname": "rm"})
        make_file(tmp_path, "log4j.properties", b"log4j.rootLogger=INFO")
        cluster = load_cluster_configuration(str(tmp_path))
        assert cluster.properties == {"yarn.resourcemanager.hostname": "rm"}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_cluster_configuration(str(tmp_path / "missing"))


class TestLoadClusterConfigurations:
    """Several directories; unset entries skipped."""

    def test_order_kept_and_unset_skipped(self, tmp_path):
        make_site_file(tmp_path / "ingest", "core-site.xml", {"fs.defaultFS": "hdfs://ingest:8020"})
        make_site_file(tmp_path / "warehouse", "core-site.xml", {"fs.defaultFS": "hdfs://warehouse:8020"})

        clusters = load_cluster_configurations([
            None, str(tmp_path / "ingest"), "", str(tmp_path / "warehouse"), str(tmp_path / "ingest"),
        ])

        assert [c.name for c in clusters] == ["ingest", "warehouse"]

    def test_missing_directory_fails(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_cluster_configurations([str(tmp_path / "missing")])

    def test_nothing_configured(self):
        assert load_cluster_configurations([None, None]) == []


class TestMatching:
    """Scheme and authority select the cluster."""

    cluster = ClusterConfiguration(name="ingest", default_fs="hdfs://ingest-nn:8020")

    def test_same_authority(self):
        assert self.cluster.matches("hdfs", "ingest-nn:8020")

    def test_other_authority(self):
        assert not self.cluster.matches("hdfs", "warehouse-nn:8020")

    def test_empty_authority(self):
        assert self.cluster.matches("hdfs", "")

    def test_other_scheme(self):
        assert not self.cluster.matches("webhdfs", "ingest-nn:8020")


class TestStorageOptions:
    """fsspec options per protocol."""

    def test_hdfs(self):
        cluster = ClusterConfiguration(
            name="ingest",
            default_fs="hdfs://ingest-nn:8020",
            properties={"dfs.client.use.datanode.hostname": "true"},
        )
        options = cluster.storage_options("hdfs", "ingest-nn:8020")
        assert options == {
            "host": "ingest-nn",
            "port": 8020,
            "extra_conf": {"dfs.client.use.datanode.hostname": "true"},
        }

    def test_hdfs_without_authority_uses_default_fs(self):
        cluster = ClusterConfiguration(name="ingest", default_fs="hdfs://ingest-nn:8020")
        options = cluster.storage_options("hdfs", "")
        assert options["host"] == "ingest-nn"
        assert options["port"] == 8020
        assert "extra_conf" not in options

    def test_hdfs_replication_set_on_client(self):
        cluster = ClusterConfiguration(name="ingest", default_fs="hdfs://nn:8020")
        options = cluster.storage_options("hdfs", "nn:8020", replication=2)
        assert options == {"host": "nn", "port": 8020, "replication": 2}

    def test_viewfs_host_is_full_uri(self):
        cluster = ClusterConfiguration(name="fed", default_fs="viewfs://federation")
        options = cluster.storage_options("viewfs", "federation", replication=3)
        assert options == {"host": "viewfs://federation", "port": 0, "replication": 3}

    def test_webhdfs_ignores_client_replication(self):
        cluster = ClusterConfiguration(name="web", default_fs="webhdfs://nn:9870")
        assert "replication" not in cluster.storage_options("webhdfs", "nn:9870", replication=2)

    def test_webhdfs(self):
        cluster = ClusterConfiguration(name="web", default_fs="webhdfs://nn:9870")
        assert cluster.storage_options("webhdfs", "nn:9870") == {"host": "nn", "port": 9870}

    def test_swebhdfs_uses_https(self):
        cluster = ClusterConfiguration(name="web", default_fs="swebhdfs://nn:9871")
        assert cluster.storage_options("swebhdfs", "nn:9871")["use_https"] is True

    def test_abfs_account_key_from_properties(self):
        host = "acct.dfs.core.windows.net"
        cluster = ClusterConfiguration(
            name="lake",
            default_fs=f"abfs://cache@{host}",
            properties={f"fs.azure.account.key.{host}": "c2VjcmV0"},
        )
        options = cluster.storage_options("abfs", f"cache@{host}")
        assert options == {"account_name": "acct", "account_key": "c2VjcmV0"}

    def test_abfs_explicit_credential_skips_default(self):
        cluster = ClusterConfiguration(
            name="lake",
            default_fs="abfss://cache@acct.dfs.core.windows.net",
            options={"credential": "token"},
        )
        options = cluster.storage_options("abfss", "cache@acct.dfs.core.windows.net")
        assert options == {"account_name": "acct", "credential": "token"}

    def test_explicit_options_win(self):
        cluster = ClusterConfiguration(
            name="ingest", default_fs="hdfs://nn:8020", options={"port": 8021, "user": "etl"},
        )
        options = cluster.storage_options("hdfs", "nn:8020")
        assert options["port"] == 8021
        assert options["user"] == "etl"

    def test_other_protocol_uses_options_only(self):
        cluster = ClusterConfiguration(name="s3", default_fs="s3://bucket", options={"anon": True})
        assert cluster.storage_options("s3", "bucket") == {"anon": True}


class TestDebugDict:
    """Secrets are masked."""

    def test_account_key_masked(self):
        cluster = ClusterConfiguration(
            name="lake",
            default_fs="abfs://c@acct.dfs.core.windows.net",
            properties={
                "fs.azure.account.key.acct.dfs.core.windows.net": "c2VjcmV0",
                "dfs.replication": "3",
            },
            options={"client_secret": "s3cr3t"},
        )
        debug = cluster.debug_dict()
        assert debug["properties"]["fs.azure.account.key.acct.dfs.core.windows.net"] == "***MASKED***"
        assert debug["properties"]["dfs.replication"] == "3"
        assert debug["options"]["client_secret"] == "***MASKED***"
