"""Type and relationship names of the open metadata types walked by the builder."""

# Entity types
RELATIONAL_TABLE = "RelationalTable"
DATA_FILE = "DataFile"
FILE_FOLDER = "FileFolder"
DATABASE = "Database"
COMPLEX_SCHEMA_TYPE = "ComplexSchemaType"

# Relationship types
SCHEMA_ATTRIBUTE_TYPE = "SchemaAttributeType"
ATTRIBUTE_FOR_SCHEMA = "AttributeForSchema"
NESTED_SCHEMA_ATTRIBUTE = "NestedSchemaAttribute"
ASSET_SCHEMA_TYPE = "AssetSchemaType"
NESTED_FILE = "NestedFile"
DATA_CONTENT_FOR_DATA_SET = "DataContentForDataSet"
CONNECTION_TO_ASSET = "ConnectionToAsset"
CONNECTION_ENDPOINT = "ConnectionEndpoint"
FOLDER_HIERARCHY = "FolderHierarchy"

# Seeds that may carry their columns through an intermediate schema type
SCHEMA_TYPE_OWNERS = frozenset({RELATIONAL_TABLE, DATA_FILE})
