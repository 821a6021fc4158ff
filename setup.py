from setuptools import setup, find_packages

setup(
    name="blog-search",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]",
        "gunicorn",
        "pydantic>=2.0.0",
        "slowapi",
        "prometheus-client",
        "python-frontmatter",
        "PyYAML",
        "tenacity",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
