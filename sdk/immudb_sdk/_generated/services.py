# mypy: ignore-errors
"""Client stubs for ``immudb.schema.ImmuService`` and ``immudb.model.DocumentService``."""

from __future__ import annotations

from google.protobuf import empty_pb2

from . import documents_pb2, schema_pb2

_EMPTY = empty_pb2.Empty


class ImmuServiceStub:
    """Stub for the subset of ImmuService the SDK calls."""

    def __init__(self, channel):
        def unary(name, request, response):
            return channel.unary_unary(
                f"/immudb.schema.ImmuService/{name}",
                request_serializer=request.SerializeToString,
                response_deserializer=response.FromString,
            )

        def streaming(name, request, response):
            return channel.unary_stream(
                f"/immudb.schema.ImmuService/{name}",
                request_serializer=request.SerializeToString,
                response_deserializer=response.FromString,
            )

        self.OpenSession = unary(
            "OpenSession", schema_pb2.OpenSessionRequest, schema_pb2.OpenSessionResponse
        )
        self.CloseSession = unary("CloseSession", _EMPTY, _EMPTY)
        self.KeepAlive = unary("KeepAlive", _EMPTY, _EMPTY)
        self.UseDatabase = unary("UseDatabase", schema_pb2.Database, schema_pb2.UseDatabaseReply)
        self.DatabaseListV2 = unary(
            "DatabaseListV2", schema_pb2.DatabaseListRequestV2, schema_pb2.DatabaseListResponseV2
        )
        self.NewTx = unary("NewTx", schema_pb2.NewTxRequest, schema_pb2.NewTxResponse)
        self.Commit = unary("Commit", _EMPTY, schema_pb2.CommittedSQLTx)
        self.Rollback = unary("Rollback", _EMPTY, _EMPTY)
        self.SQLExec = unary("SQLExec", schema_pb2.SQLExecRequest, schema_pb2.SQLExecResult)
        self.TxSQLExec = unary("TxSQLExec", schema_pb2.SQLExecRequest, _EMPTY)
        self.SQLQuery = streaming("SQLQuery", schema_pb2.SQLQueryRequest, schema_pb2.SQLQueryResult)
        self.TxSQLQuery = streaming(
            "TxSQLQuery", schema_pb2.SQLQueryRequest, schema_pb2.SQLQueryResult
        )


class DocumentServiceStub:
    """Stub for the collection and document RPCs of DocumentService."""

    def __init__(self, channel):
        def unary(name, request, response):
            return channel.unary_unary(
                f"/immudb.model.DocumentService/{name}",
                request_serializer=request.SerializeToString,
                response_deserializer=response.FromString,
            )

        self.CreateCollection = unary(
            "CreateCollection",
            documents_pb2.CreateCollectionRequest,
            documents_pb2.CreateCollectionResponse,
        )
        self.GetCollections = unary(
            "GetCollections",
            documents_pb2.GetCollectionsRequest,
            documents_pb2.GetCollectionsResponse,
        )
        self.DeleteCollection = unary(
            "DeleteCollection",
            documents_pb2.DeleteCollectionRequest,
            documents_pb2.DeleteCollectionResponse,
        )
        self.InsertDocuments = unary(
            "InsertDocuments",
            documents_pb2.InsertDocumentsRequest,
            documents_pb2.InsertDocumentsResponse,
        )
        self.SearchDocuments = unary(
            "SearchDocuments",
            documents_pb2.SearchDocumentsRequest,
            documents_pb2.SearchDocumentsResponse,
        )
