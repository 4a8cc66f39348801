from dcmodel.PARSERS.env_parser import EnvParser

def test_parse_from_string():
    content = """
    KEY1=VALUE1
    KEY2 = VALUE2
    # This is a comment
    KEY3="VALUE3" # Trailing comment
    KEY4='VALUE4'
    """
    env = EnvParser.parse_from_string(content)
    assert env['KEY1'] == 'VALUE1'
    assert env['KEY2'] == 'VALUE2'
    assert env['KEY3'] == 'VALUE3'
    assert env['KEY4'] == 'VALUE4'
    assert 'KEY5' not in env

def test_values_are_not_expanded():
    env = EnvParser.parse_from_string("BASE=/srv\nDATA=${BASE}/data\nexport MODE=prod\n")
    assert env['DATA'] == '${BASE}/data'
    assert env['MODE'] == 'prod'

def test_keys_without_value():
    env = EnvParser.parse_from_string("EMPTY=\nBARE\n")
    assert env['EMPTY'] == ''
    assert 'BARE' not in env

def test_parse_file(tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("TAG=1.2\nMESSAGE=\"hello world\"\n")
    assert EnvParser.parse(str(env_file)) == {'TAG': '1.2', 'MESSAGE': 'hello world'}
