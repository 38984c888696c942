"""Launch a token endpoint guarded by client authentication.

Usage (from the project root):
    python examples/run.py

Then test with curl:
    curl -X POST localhost:8000/token -d grant_type=client_credentials          # anonymous
    curl -X POST localhost:8000/token -d client_id=public-app                   # none
    curl -X POST localhost:8000/token -u backend-service:backend-service-secret # client_secret_basic
    curl -X POST localhost:8000/token -d client_id=batch-job -d client_secret=batch-job-secret
    curl -X POST localhost:8000/token -d client_id=retired-app -d client_secret=retired-app-secret  # 401
"""

from pathlib import Path

from oauth2_client_auth import JsonFileClientRepository, build_registry, provision_client, serve

registry = build_registry(["none", "client_secret_basic", "client_secret_post"], realm="example")
repository = JsonFileClientRepository.load(Path(__file__).parent / "clients.json")

# Provision one more client at startup and print its secret
new_client = provision_client(registry, "provisioned-app", "client_secret_post")
repository.save(new_client)
print(f"Registered methods:  {', '.join(registry.list())}")
print(f"Provisioned client:  provisioned-app / {new_client.get('client_secret')}")

serve(registry, repository, host="127.0.0.1", port=8000)
