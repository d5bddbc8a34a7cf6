#!/usr/bin/env python3
"""
immudb SDK Demo - SQL transactions and document search.

Requires an immudb server on localhost:3322 (default credentials).
Connection settings can be overridden with IMMUDB_* environment variables.
"""

import asyncio
import logging
from dataclasses import dataclass

from sdk.immudb_sdk import (
    CollectionField,
    CreateCollection,
    FieldType,
    ImmuClient,
    ImmuDbError,
    Params,
    SearchDocuments,
    SqlClient,
)


@dataclass
class User:
    id: int
    name: str
    active: bool


async def main():
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("immudb Demo - SQL and Documents")
    print("=" * 60)

    async with ImmuClient() as client:
        print(f"\n[Setup] Connected to {client.options.address}")
        print(f"  - Session: {client.session.session_id}")

        # 1. SQL
        print("\n[Step 1] Creating table and inserting users...")
        sql = client.sql()
        await sql.exec(
            "CREATE TABLE IF NOT EXISTS demo_users("
            "id INTEGER, name VARCHAR, active BOOLEAN, PRIMARY KEY id)"
        )

        async def insert_users(tx: SqlClient) -> int:
            for user_id, name in ((1, "alice"), (2, "bob"), (3, "carol")):
                await tx.exec(
                    "UPSERT INTO demo_users(id, name, active) VALUES (@id, @name, @active)",
                    Params().bind("id", user_id).bind("name", name).bind("active", user_id != 2),
                )
            return 3

        inserted = await sql.with_transaction(insert_users)
        print(f"  - Inserted {inserted} users in one transaction")

        # 2. Queries
        print("\n[Step 2] Querying...")
        count = await sql.query_scalar("SELECT COUNT(*) FROM demo_users", int)
        print(f"  - Row count: {count}")

        users = await sql.query_as(
            "SELECT id, name, active FROM demo_users WHERE active = @active ORDER BY id",
            User,
            {"active": True},
        )
        for user in users:
            print(f"  - {user}")

        # 3. Documents
        print("\n[Step 3] Document collection...")
        doc = client.doc()
        collection = "demo_documents"
        try:
            await doc.delete_collection(collection)
        except ImmuDbError:
            pass

        await (
            CreateCollection(collection, document_id_field_name="my_id")
            .field(CollectionField("group_id", FieldType.STRING, indexed=True))
            .field(CollectionField("value", FieldType.STRING))
            .field(CollectionField("is_active", FieldType.BOOLEAN, indexed=True))
            .create(doc)
        )
        result = await doc.insert_documents(
            collection,
            [{"group_id": "group_a", "value": "Zm9vYmFyCg==", "is_active": True}],
        )
        print(f"  - Inserted document ids: {result.document_ids}")

        found = await SearchDocuments(
            {
                "collection_name": collection,
                "limit": 50,
                "order_by": [{"field": "group_id", "desc": True}],
                "where": {
                    "AND": [
                        {"field": "group_id", "op": "EQ", "value": "group_a"},
                        {"field": "is_active", "op": "EQ", "value": True},
                    ]
                },
            },
            page_size=10,
        ).execute(doc)
        print(f"  - Found {len(found.revisions)} document(s)")
        for document in found.documents():
            print(f"    {document}")

    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
