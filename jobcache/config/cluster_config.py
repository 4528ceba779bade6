# ============================================================================
# CLUSTER CONFIGURATION
# ============================================================================
# STATUS: Config - one Hadoop-compatible cluster per configuration directory
# PURPOSE: Read *-site.xml files and turn them into fsspec storage options
# EXPORTS: ClusterConfiguration, load_cluster_configurations, read_site_file
# DEPENDENCIES: pydantic, xml.etree, os, urllib
# SOURCE: Hadoop configuration directories (INGEST_HADOOP_CONF, WAREHOUSE_HADOOP_CONF)
# ============================================================================

"""
Cluster Configuration.

A Hadoop configuration directory describes one cluster: its default filesystem
(fs.defaultFS) plus whatever client properties the cluster needs. Each
directory becomes one ClusterConfiguration; FileSystemPath picks the one whose
default filesystem matches a destination URL and asks it for fsspec storage
options.

Protocol mapping:
    hdfs, viewfs      -> pyarrow HadoopFileSystem (host, port, replication,
                         extra_conf)
    webhdfs, swebhdfs -> fsspec WebHDFS (host, port; use_https for swebhdfs)
    abfs, abfss       -> adlfs AzureBlobFileSystem (account_name, account_key
                         or DefaultAzureCredential)
    anything else     -> explicit `options` only

Usage:
    from jobcache.config import load_cluster_configurations

    clusters = load_cluster_configurations(["/etc/hadoop/conf"])
    clusters[0].default_fs   # "hdfs://namenode:8020"
"""

import os
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from .defaults import HadoopDefaults
from ..exceptions import ConfigurationError
from ..util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.CONFIG, __name__)


class ClusterConfiguration(BaseModel):
    """
    Configuration for one Hadoop-compatible cluster.

    Attributes:
        name: Label used in logs (configuration directory name by default)
        default_fs: Default filesystem URL (fs.defaultFS)
        properties: Merged Hadoop properties from the site files
        options: Explicit fsspec storage options; override derived ones
        atomic_rename: Override whether directory rename is atomic on this
                       cluster (None = decide from the protocol)
    """

    name: str
    default_fs: str = Field(default=HadoopDefaults.DEFAULT_FS)
    properties: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)
    atomic_rename: Optional[bool] = None

    @property
    def protocol(self) -> str:
        return urlsplit(self.default_fs).scheme or "file"

    @property
    def authority(self) -> str:
        return urlsplit(self.default_fs).netloc

    def matches(self, protocol: str, authority: str) -> bool:
        """
        True if this cluster serves the given scheme and authority.

        An empty authority (hdfs:///path) matches any cluster of the same
        scheme; callers pick the first one.
        """
        if self.protocol != protocol:
            return False
        return not authority or self.authority == authority

    def storage_options(self, protocol: str, authority: str,
                        replication: Optional[int] = None) -> Dict[str, Any]:
        """
        Derive fsspec storage options for a destination on this cluster.

        Args:
            protocol: Destination scheme (hdfs, abfs, ...)
            authority: Destination authority (host:port, container@account)
            replication: Replication factor for files written by the client,
                         for protocols that fix it per connection (hdfs)

        Returns:
            Keyword arguments for fsspec.filesystem(protocol, ...)
        """
        authority = authority or self.authority
        derived: Dict[str, Any] = {}

        if protocol in ("hdfs", "viewfs"):
            host, port = _split_host_port(authority)
            derived["host"] = host or "default"
            derived["port"] = port or 0
            if protocol == "viewfs" and host:
                # libhdfs resolves a viewfs mount table from a full URI
                derived["host"] = f"viewfs://{authority}"
            if replication is not None:
                derived["replication"] = replication
            if self.properties:
                derived["extra_conf"] = dict(self.properties)
        elif protocol in ("webhdfs", "swebhdfs"):
            host, port = _split_host_port(authority)
            derived["host"] = host
            if port:
                derived["port"] = port
            if protocol == "swebhdfs":
                derived["use_https"] = True
        elif protocol in ("abfs", "abfss"):
            derived.update(self._azure_options(authority))

        derived.update(self.options)
        return derived

    def _azure_options(self, authority: str) -> Dict[str, Any]:
        # abfs://<container>@<account>.dfs.core.windows.net
        host = authority.split("@", 1)[-1]
        account_name = host.split(".", 1)[0]
        options: Dict[str, Any] = {"account_name": account_name}

        account_key = self.properties.get(HadoopDefaults.AZURE_ACCOUNT_KEY_PREFIX + host)
        if account_key:
            options["account_key"] = account_key
        elif "credential" not in self.options and "account_key" not in self.options:
            from azure.identity import DefaultAzureCredential
            logger.debug(f"Using DefaultAzureCredential for storage account {account_name}")
            options["credential"] = DefaultAzureCredential()
        return options

    def debug_dict(self) -> dict:
        """Configuration with secret-looking values masked."""
        return {
            "name": self.name,
            "default_fs": self.default_fs,
            "atomic_rename": self.atomic_rename,
            "properties": {k: _mask(k, v) for k, v in self.properties.items()},
            "options": {k: _mask(k, v) for k, v in self.options.items()},
        }


def _mask(key: str, value: Any) -> Any:
    lowered = key.lower()
    if any(marker in lowered for marker in HadoopDefaults.SECRET_MARKERS):
        return "***MASKED***"
    return value


def _split_host_port(authority: str):
    if not authority:
        return None, None
    parsed = urlsplit(f"//{authority}")
    return parsed.hostname, parsed.port


def read_site_file(path: str) -> Dict[str, str]:
    """
    Parse one Hadoop *-site.xml file.

    Args:
        path: Path to the XML file

    Returns:
        Property name -> value

    Raises:
        ConfigurationError: If the file is not well-formed XML
    """
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ConfigurationError(f"Malformed Hadoop configuration file {path}: {e}") from e

    properties: Dict[str, str] = {}
    for prop in tree.getroot().iter("property"):
        name = prop.findtext("name")
        if not name:
            continue
        properties[name.strip()] = (prop.findtext("value") or "").strip()
    return properties


def _site_files(conf_dir: str) -> List[str]:
    """Well-known site files first, then any other *-site.xml alphabetically."""
    present = set(os.listdir(conf_dir))
    ordered = [name for name in HadoopDefaults.SITE_FILES if name in present]
    ordered.extend(sorted(
        name for name in present
        if name.endswith(HadoopDefaults.SITE_FILE_SUFFIX) and name not in ordered
    ))
    return [os.path.join(conf_dir, name) for name in ordered]


def load_cluster_configuration(conf_dir: str) -> ClusterConfiguration:
    """
    Read one Hadoop configuration directory.

    Raises:
        ConfigurationError: If the directory does not exist or a file is malformed
    """
    if not os.path.isdir(conf_dir):
        raise ConfigurationError(f"Hadoop configuration directory does not exist: {conf_dir}")

    properties: Dict[str, str] = {}
    for site_file in _site_files(conf_dir):
        properties.update(read_site_file(site_file))

    default_fs = (
        properties.get(HadoopDefaults.DEFAULT_FS_KEY)
        or properties.get(HadoopDefaults.LEGACY_DEFAULT_FS_KEY)
        or HadoopDefaults.DEFAULT_FS
    )
    name = os.path.basename(os.path.normpath(conf_dir))
    logger.debug(f"Read {len(properties)} properties from {conf_dir} (fs.defaultFS={default_fs})")
    return ClusterConfiguration(name=name, default_fs=default_fs, properties=properties)


def load_cluster_configurations(conf_dirs: Iterable[Optional[str]]) -> List[ClusterConfiguration]:
    """
    Read every configured Hadoop configuration directory.

    Unset entries (None or empty, e.g. an environment variable that is not
    defined) are skipped. Duplicate directories are read once.

    Returns:
        One ClusterConfiguration per directory, in the given order
    """
    configs: List[ClusterConfiguration] = []
    seen = set()
    for conf_dir in conf_dirs:
        if not conf_dir or conf_dir in seen:
            continue
        seen.add(conf_dir)
        configs.append(load_cluster_configuration(conf_dir))

    logger.info(f"Loaded {len(configs)} cluster configuration(s): {[c.default_fs for c in configs]}")
    return configs
