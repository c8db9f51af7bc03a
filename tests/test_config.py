from relay.config import Settings


def test_cors_origins_parses_csv_values():
    settings = Settings(cors_allowed_origins='https://example.com, https://admin.example.com')
    assert settings.cors_origins == ['https://example.com', 'https://admin.example.com']


def test_cors_origins_falls_back_when_empty():
    settings = Settings(cors_allowed_origins='   ')
    assert settings.cors_origins == ['*']


def test_stream_ids_parse_csv():
    settings = Settings(published_streams='cam1, cam2,,cam3 ')
    assert settings.stream_ids == ['cam1', 'cam2', 'cam3']


def test_stream_ids_default_to_five_streams():
    settings = Settings(published_streams='')
    assert settings.stream_ids == ['stream1', 'stream2', 'stream3', 'stream4', 'stream5']


def test_missing_launch_settings_lists_every_gap():
    settings = Settings(remote_host='', remote_user='', ssh_private_key='', ssh_key_path='', start_command='')
    assert settings.missing_launch_settings() == [
        'remote_host', 'remote_user', 'ssh_private_key', 'start_command',
    ]


def test_missing_launch_settings_accepts_key_path():
    settings = Settings(
        remote_host='h', remote_user='u', ssh_private_key='', ssh_key_path='/keys/id', start_command='run &',
    )
    assert settings.missing_launch_settings() == []


def test_credential_check_result_overrides_presence():
    settings = Settings(
        remote_host='h', remote_user='u', ssh_private_key='garbage', start_command='run &',
    )
    assert settings.missing_launch_settings(credential_ok=False) == ['ssh_private_key']


def test_missing_relay_settings():
    assert Settings(origin_base_url='').missing_relay_settings() == ['origin_base_url']
    assert Settings(origin_base_url='http://10.0.0.5:8888').missing_relay_settings() == []
