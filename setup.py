from setuptools import setup, find_packages

setup(
    name="review-assigner",
    version="1.0.0",
    description="Reviewer to paper auto-assignment for peer-review conferences",
    license="MIT",
    packages=find_packages(include=["assigner", "assigner.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.21",
        "Flask==3.*",
        "Werkzeug==3.*",
        "flask-cors>=3.0",
        "celery==5.*",
        "redis>=5.0",
        "kombu>=5.3.0,<6.0",
        "MarkupSafe>=2.1",
        "gunicorn",
    ],
    extras_require={
        "test": ["pytest>=7"],
        "dev": ["pytest>=7", "flake8", "pre-commit"],
        "full": ["flower"],
    },
    entry_points={
        "console_scripts": ["review-assigner=assigner.__main__:main"],
    },
    zip_safe=False,
)
