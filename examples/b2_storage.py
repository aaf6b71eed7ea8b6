import asyncio
import logging
import os
import tempfile

from dotenv import load_dotenv

from b2client import AsyncB2Client, B2Client

load_dotenv()
logging.basicConfig(level=logging.INFO)
logging.getLogger("b2client").setLevel(logging.DEBUG)


async def main() -> None:
    assert os.getenv("B2_APPLICATION_KEY_ID"), "Set B2_APPLICATION_KEY_ID"
    assert os.getenv("B2_APPLICATION_KEY"), "Set B2_APPLICATION_KEY"
    bucket_name = os.getenv("B2_BUCKET_NAME", "b2client-examples")

    # Instantiate clients
    client = AsyncB2Client()
    client_sync = B2Client()

    # 1) Make sure the bucket exists (sync client)
    bucket = client_sync.get_bucket(bucket_name) or client_sync.create_bucket(bucket_name)
    print("bucket:", bucket.name, bucket.type)

    # 2) Upload a small text file (async client)
    data = b"hello from python" * 1024
    uploaded = await client.upload(
        data,
        file_name="examples/hello.txt",
        bucket_name=bucket.name,
        content_type="text/plain",
        info={"example": "b2_storage"},
    )
    print("uploaded:", uploaded.name, uploaded.content_sha1)

    # 3) Upload a local file; files over the account part size go up as parallel parts
    with tempfile.NamedTemporaryFile(suffix=".bin", delete=False) as tmp:
        tmp.write(os.urandom(1024 * 1024))
    local = await client.upload_file(
        tmp.name,
        file_name="examples/local.bin",
        bucket_name=bucket.name,
        concurrency=4,
    )
    print("uploaded local file:", local.name, local.size, "bytes")

    # 4) List and check existence (sync client)
    for file in client_sync.list_files(bucket_name=bucket.name):
        print(" -", file.name, file.size)
    print("exists:", client_sync.file_exists("examples/hello.txt", bucket_name=bucket.name))

    # 5) Download by name and by id
    by_name = await client.download(bucket_name=bucket.name, file_name="examples/hello.txt")
    assert by_name.content == data
    by_id = client_sync.download(file_id=local.id, save_as=tmp.name + ".copy")
    print("downloaded:", by_id.file_name, by_id.size, "bytes")

    # 6) Clean up
    for file in (uploaded, local):
        await client.delete_file(file.id, file.name)
    os.unlink(tmp.name)
    os.unlink(tmp.name + ".copy")

    await client.aclose()
    client_sync.close()


if __name__ == "__main__":
    asyncio.run(main())
