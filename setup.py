"""Install the research paper review workflow.

This includes the workflow core (``paperreview``) and its HTTP API
(``reviewapi``).
"""

from setuptools import setup, find_packages

setup(
    name='paperreview',
    version='0.1.0',
    packages=find_packages(include=['paperreview', 'paperreview.*',
                                    'reviewapi', 'reviewapi.*']),
    zip_safe=False,
    python_requires='>=3.8',
    install_requires=[
        'flask>=2.2',
        'bleach',
        'python-dateutil',
        'sqlalchemy>=1.4',
        'flask-sqlalchemy>=3.0',
        'celery>=5.0',
        'kombu>=5.0',
        'redis',
        'retry',
        'pytz',
        'pyjwt>=2.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    include_package_data=True
)
