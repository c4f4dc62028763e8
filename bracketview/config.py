import os


class Config:
    # TrueFinals (tournament snapshots)
    TRUEFINALS_BASE_URL = os.getenv('TRUEFINALS_BASE_URL', 'https://truefinals.com/api')
    TRUEFINALS_API_KEY = os.getenv('TRUEFINALS_API_KEY', '')
    TRUEFINALS_API_USER_ID = os.getenv('TRUEFINALS_API_USER_ID', '')

    # NHRL Statsbook (historical statistics)
    NHRL_STATS_BASE_URL = os.getenv('NHRL_STATS_BASE_URL', 'https://stats.nhrl.io/statsbook')
    ENABLE_STATS_ANNOTATION = os.getenv('ENABLE_STATS_ANNOTATION', 'true').lower() == 'true'
    STATS_LOOKUP_WORKERS = int(os.getenv('STATS_LOOKUP_WORKERS', '4'))

    # Ceiling for every outbound call, in seconds
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '30'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    JSON_SORT_KEYS = False


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    TRUEFINALS_BASE_URL = 'http://truefinals.test/api'
    TRUEFINALS_API_KEY = 'test-key'
    TRUEFINALS_API_USER_ID = 'test-user'
    NHRL_STATS_BASE_URL = 'http://stats.test/statsbook'
    STATS_LOOKUP_WORKERS = 1
    REQUEST_TIMEOUT = 5.0


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
