from typing import Any

from dpid_resolver.domain.shared.error import DataBucketMissing

DATA_BUCKET_NAME = "root"


def data_bucket_cid(manifest: dict[str, Any]) -> str:
    """CID of the manifest's ``root`` component, the UnixFS root of its data.

    Raises:
        DataBucketMissing: if the manifest has no usable ``root`` component.
    """
    for component in manifest.get("components") or []:
        if not isinstance(component, dict) or component.get("name") != DATA_BUCKET_NAME:
            continue
        cid = (component.get("payload") or {}).get("cid")
        if isinstance(cid, str) and cid:
            return cid
    raise DataBucketMissing("Manifest doesn't have a data bucket")
