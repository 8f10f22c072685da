from setuptools import setup, find_packages

setup(
    name="merge-batcher",
    version="0.1.0",
    description="Merge pending SQL statements into fewer round trips",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        'click==8.1.8',
        'psycopg2-binary==2.9.10',
        'rich==13.9.4',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'merge-batcher=merge_batcher.cli:main',
        ],
    },
)
