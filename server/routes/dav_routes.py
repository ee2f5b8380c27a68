"""WebDAV method routes translating HTTP requests into adapter calls."""

import logging
import os
from urllib.parse import unquote, urlparse

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from starlette.concurrency import run_in_threadpool

from davfs.adapter import FileSystemAdapter, normalize_name
from davfs.exceptions import IsDirectoryError, NotFoundError
from server.config import MOUNT_PREFIX
from server.multistatus import build_multistatus, http_date
from server.service_locator import get_filesystem

logger = logging.getLogger(__name__)

router = APIRouter(prefix=MOUNT_PREFIX, tags=["WebDAV"])

ALLOWED_METHODS = "OPTIONS, GET, HEAD, PUT, DELETE, MKCOL, MOVE, PROPFIND"
XML_MEDIA_TYPE = 'application/xml; charset="utf-8"'


def _exists(filesystem: FileSystemAdapter, path: str) -> bool:
    try:
        filesystem.stat(path)
    except NotFoundError:
        return False
    return True


def destination_path(destination: str) -> str:
    """
    Extract the object path from a MOVE Destination header.

    Args:
        destination: Absolute URL or absolute path (e.g., "http://host/dav/b.txt")

    Returns:
        Path relative to the mount prefix (e.g., "/b.txt")

    Raises:
        HTTPException: 400 if the destination lies outside the mount prefix
    """
    path = unquote(urlparse(destination).path)
    if MOUNT_PREFIX:
        if path != MOUNT_PREFIX and not path.startswith(f"{MOUNT_PREFIX}/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Destination outside of {MOUNT_PREFIX}: {destination}"
            )
        path = path[len(MOUNT_PREFIX):]
    return path or "/"


@router.options("/{path:path}")
def options(path: str):
    """
    Advertise DAV compliance class 1 (no locking).
    """
    return Response(
        status_code=status.HTTP_200_OK,
        headers={"DAV": "1", "Allow": ALLOWED_METHODS, "MS-Author-Via": "DAV"}
    )


@router.get("/{path:path}")
def get_file(path: str, filesystem: FileSystemAdapter = Depends(get_filesystem)):
    """
    Return the full content of an object.

    Raises:
        - 404: Object does not exist
        - 405: Path is the root collection
    """
    with filesystem.open_file(path) as handle:
        entry = handle.stat()
        content = handle.read()
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Last-Modified": http_date(entry)}
    )


@router.head("/{path:path}")
def head_file(path: str, filesystem: FileSystemAdapter = Depends(get_filesystem)):
    """
    Return the headers GET would return, without the body.
    """
    entry = filesystem.stat(path)
    if entry.is_directory:
        raise IsDirectoryError("Cannot read the root directory")
    headers = {
        "Last-Modified": http_date(entry),
        "Content-Length": str(entry.size),
    }
    return Response(status_code=status.HTTP_200_OK, headers=headers)


@router.put("/{path:path}")
async def put_file(
    path: str,
    request: Request,
    filesystem: FileSystemAdapter = Depends(get_filesystem)
):
    """
    Replace an object's content with the request body.

    Returns:
        - 201: Object created
        - 204: Existing object replaced
    """
    content = await request.body()

    def store() -> bool:
        existed = _exists(filesystem, path)
        with filesystem.open_file(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC) as handle:
            handle.write(content)
            handle.truncate()
        return existed

    existed = await run_in_threadpool(store)
    logger.info(f"Stored {len(content)} bytes at {path!r}")
    return Response(status_code=status.HTTP_204_NO_CONTENT if existed else status.HTTP_201_CREATED)


@router.delete("/{path:path}")
def delete_file(path: str, filesystem: FileSystemAdapter = Depends(get_filesystem)):
    """
    Delete an object.

    Raises:
        - 404: Object does not exist
    """
    filesystem.remove_all(path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route("/{path:path}", methods=["MKCOL"])
def make_collection(path: str, filesystem: FileSystemAdapter = Depends(get_filesystem)):
    """
    Accept collection creation; the flat pool has nothing to create.
    """
    filesystem.mkdir(path)
    return Response(status_code=status.HTTP_201_CREATED)


@router.api_route("/{path:path}", methods=["MOVE"])
def move_file(
    path: str,
    destination: str = Header(None),
    overwrite: str = Header("T"),
    filesystem: FileSystemAdapter = Depends(get_filesystem)
):
    """
    Rename an object by copy-then-delete. Not atomic: see FileSystemAdapter.rename.

    Returns:
        - 201: Destination created
        - 204: Destination replaced

    Raises:
        - 400: Missing or foreign Destination header
        - 404: Source does not exist
        - 412: Destination exists and Overwrite is F
    """
    if not destination:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Destination header is required"
        )
    target = destination_path(destination)
    existed = normalize_name(target) != normalize_name(path) and _exists(filesystem, target)
    if existed and overwrite.strip().upper() == "F":
        raise HTTPException(
            status_code=status.HTTP_412_PRECONDITION_FAILED,
            detail=f"Destination exists: {target}"
        )
    filesystem.rename(path, target)
    return Response(status_code=status.HTTP_204_NO_CONTENT if existed else status.HTTP_201_CREATED)


@router.api_route("/{path:path}", methods=["PROPFIND"])
def propfind(
    path: str,
    depth: str = Header("infinity"),
    filesystem: FileSystemAdapter = Depends(get_filesystem)
):
    """
    Describe an object, or list the root collection for Depth 1 / infinity.

    Returns:
        - 207: Multi-Status XML document
    """
    entry = filesystem.stat(path)
    if depth.strip() != "0" and entry.is_directory:
        entries = filesystem.readdir(path)
    else:
        entries = [entry]
    return Response(
        content=build_multistatus(MOUNT_PREFIX, entries),
        status_code=207,
        media_type=XML_MEDIA_TYPE
    )
