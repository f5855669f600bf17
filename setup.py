from setuptools import setup, find_packages

setup(
    name='eksblueprint',
    version='1.0.0',
    packages=find_packages(include=['eksblueprint', 'eksblueprint.*']),
    entry_points={
        'console_scripts': [
            'eksblueprint=eksblueprint.cli.CommandLineInterface:main',
        ],
    },
    python_requires='>=3.9',
    install_requires=[
        'python-dotenv==1.0.0',
        'click>=8.1',
        'rich',
        'watchtower>=3.0',
        'boto3',
        'pyyaml',
        'fastapi>=0.110',
        'uvicorn>=0.27',
        'aws-cdk-lib>=2.140.0,<3.0.0',
        'constructs>=10.0.0,<11.0.0',
        'aws-cdk.lambda-layer-kubectl-v29>=2.0.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
)
