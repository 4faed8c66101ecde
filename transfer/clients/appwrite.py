"""Minimal Appwrite REST services used by the Appwrite destination."""

from typing import Any, Dict, List, Optional

from .rest import RestClient


class AppwriteClient(RestClient):
    """RestClient preconfigured with Appwrite project and key headers."""

    def __init__(self, endpoint: str, project_id: str, api_key: str, **kwargs):
        headers = {
            "X-Appwrite-Project": project_id,
            "X-Appwrite-Key": api_key,
            "X-Appwrite-Response-Format": "1.4.0",
        }
        super().__init__(endpoint, headers=headers, **kwargs)
        self.project_id = project_id


class Users:
    """User endpoints, including hash-specific creation."""

    def __init__(self, client: RestClient):
        self.client = client

    def list(self, limit: int = 1) -> Dict[str, Any]:
        return self.client.call("GET", "/users", params={"queries": [f"limit({limit})"]})

    def create(
        self,
        user_id: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {"userId": user_id, "email": email, "phone": phone,
                  "password": password, "name": name}
        return self.client.call("POST", "/users", params=_compact(params))

    def create_bcrypt_user(self, user_id: str, email: str, password: str,
                           name: Optional[str] = None) -> Dict[str, Any]:
        params = {"userId": user_id, "email": email, "password": password, "name": name}
        return self.client.call("POST", "/users/bcrypt", params=_compact(params))

    def create_argon2_user(self, user_id: str, email: str, password: str,
                           name: Optional[str] = None) -> Dict[str, Any]:
        params = {"userId": user_id, "email": email, "password": password, "name": name}
        return self.client.call("POST", "/users/argon2", params=_compact(params))

    def create_sha_user(self, user_id: str, email: str, password: str,
                        password_version: str = "sha256",
                        name: Optional[str] = None) -> Dict[str, Any]:
        params = {"userId": user_id, "email": email, "password": password,
                  "passwordVersion": password_version, "name": name}
        return self.client.call("POST", "/users/sha", params=_compact(params))

    def create_phpass_user(self, user_id: str, email: str, password: str,
                           name: Optional[str] = None) -> Dict[str, Any]:
        params = {"userId": user_id, "email": email, "password": password, "name": name}
        return self.client.call("POST", "/users/phpass", params=_compact(params))

    def create_scrypt_user(self, user_id: str, email: str, password: str, password_salt: str,
                           password_cpu: int, password_memory: int, password_parallel: int,
                           password_length: int, name: Optional[str] = None) -> Dict[str, Any]:
        params = {
            "userId": user_id,
            "email": email,
            "password": password,
            "passwordSalt": password_salt,
            "passwordCpu": password_cpu,
            "passwordMemory": password_memory,
            "passwordParallel": password_parallel,
            "passwordLength": password_length,
            "name": name,
        }
        return self.client.call("POST", "/users/scrypt", params=_compact(params))

    def create_scrypt_modified_user(self, user_id: str, email: str, password: str,
                                    password_salt: str, password_salt_separator: str,
                                    password_signer_key: str,
                                    name: Optional[str] = None) -> Dict[str, Any]:
        params = {
            "userId": user_id,
            "email": email,
            "password": password,
            "passwordSalt": password_salt,
            "passwordSaltSeparator": password_salt_separator,
            "passwordSignerKey": password_signer_key,
            "name": name,
        }
        return self.client.call("POST", "/users/scrypt-modified", params=_compact(params))

    def update_name(self, user_id: str, name: str) -> Dict[str, Any]:
        return self.client.call("PATCH", f"/users/{user_id}/name", params={"name": name})

    def update_phone(self, user_id: str, number: str) -> Dict[str, Any]:
        return self.client.call("PATCH", f"/users/{user_id}/phone", params={"number": number})

    def update_email_verification(self, user_id: str, verified: bool) -> Dict[str, Any]:
        return self.client.call("PATCH", f"/users/{user_id}/verification",
                                params={"emailVerification": verified})

    def update_phone_verification(self, user_id: str, verified: bool) -> Dict[str, Any]:
        return self.client.call("PATCH", f"/users/{user_id}/verification/phone",
                                params={"phoneVerification": verified})

    def update_status(self, user_id: str, status: bool) -> Dict[str, Any]:
        return self.client.call("PATCH", f"/users/{user_id}/status", params={"status": status})


class Databases:
    """Database, collection, attribute, index and document endpoints."""

    def __init__(self, client: RestClient):
        self.client = client

    def list(self, limit: int = 1) -> Dict[str, Any]:
        return self.client.call("GET", "/databases", params={"queries": [f"limit({limit})"]})

    def create(self, database_id: str, name: str) -> Dict[str, Any]:
        return self.client.call("POST", "/databases",
                                params={"databaseId": database_id, "name": name})

    def create_collection(self, database_id: str, collection_id: str, name: str,
                          permissions: Optional[List[str]] = None,
                          document_security: bool = False) -> Dict[str, Any]:
        return self.client.call(
            "POST",
            f"/databases/{database_id}/collections",
            params={
                "collectionId": collection_id,
                "name": name,
                "permissions": permissions or [],
                "documentSecurity": document_security,
            },
        )

    def create_attribute(self, database_id: str, collection_id: str, attribute_type: str,
                         params: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.call(
            "POST",
            f"/databases/{database_id}/collections/{collection_id}/attributes/{attribute_type}",
            params=_compact(params),
        )

    def create_index(self, database_id: str, collection_id: str, key: str, index_type: str,
                     attributes: List[str], orders: List[str]) -> Dict[str, Any]:
        return self.client.call(
            "POST",
            f"/databases/{database_id}/collections/{collection_id}/indexes",
            params={"key": key, "type": index_type, "attributes": attributes, "orders": orders},
        )

    def create_document(self, database_id: str, collection_id: str, document_id: str,
                        data: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.call(
            "POST",
            f"/databases/{database_id}/collections/{collection_id}/documents",
            params={"documentId": document_id, "data": data},
        )


class Storage:
    """Bucket and chunked file upload endpoints."""

    def __init__(self, client: RestClient):
        self.client = client

    def list_buckets(self, limit: int = 1) -> Dict[str, Any]:
        return self.client.call("GET", "/storage/buckets", params={"queries": [f"limit({limit})"]})

    def create_bucket(self, bucket_id: str, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.call("POST", "/storage/buckets",
                                params={"bucketId": bucket_id, "name": name, **_compact(params)})

    def upload_chunk(self, bucket_id: str, file_id: str, file_name: str, chunk: bytes,
                     start: int, end: int, size: int,
                     permissions: Optional[List[str]] = None) -> Dict[str, Any]:
        headers = {"Content-Type": "multipart/form-data"}
        # Empty files go up as a plain single-request upload.
        if size > 0:
            headers["Content-Range"] = f"bytes {start}-{end}/{size}"
        if start > 0:
            headers["X-Appwrite-ID"] = file_id
        params: Dict[str, Any] = {"fileId": file_id, "file": (file_name, chunk)}
        if permissions:
            params["permissions"] = permissions
        return self.client.call("POST", f"/storage/buckets/{bucket_id}/files",
                                headers=headers, params=params)


class Functions:
    """Function and variable endpoints."""

    def __init__(self, client: RestClient):
        self.client = client

    def list(self, limit: int = 1) -> Dict[str, Any]:
        return self.client.call("GET", "/functions", params={"queries": [f"limit({limit})"]})

    def create(self, function_id: str, name: str, runtime: str,
               params: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.call(
            "POST", "/functions",
            params={"functionId": function_id, "name": name, "runtime": runtime, **params},
        )

    def create_variable(self, function_id: str, key: str, value: str) -> Dict[str, Any]:
        return self.client.call("POST", f"/functions/{function_id}/variables",
                                params={"key": key, "value": value})


def _compact(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset optional parameters."""
    return {k: v for k, v in params.items() if v is not None}
