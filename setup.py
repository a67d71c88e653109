from setuptools import setup, find_packages


setup(
    name='forgd_launchpad',
    version='0.1',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        'flask',
        'flask-openapi3',
        'pydantic>=2',
        'pydantic-settings',
        'loguru',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'forgd_launchpad = forgd_launchpad.main:main',
        ],
    },
)
