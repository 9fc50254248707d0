from setuptools import setup, find_namespace_packages

setup(
    name="digitalflix_api",
    version="0.1",
    packages=find_namespace_packages(include=["app*", "catalog*", "models*", "ingestion*"]),
    install_requires=[
        "fastapi",
        "starlette",
        "uvicorn",
        "httpx>=0.27.0",
        "pydantic>=2",
        "pymongo>=4.13",
        "PyJWT>=2.8",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires='>=3.11',
)
