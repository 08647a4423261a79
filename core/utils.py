MENU_ITEMS = [
    {
        'name': 'Métricas Enleve',
        'icon': 'bi-graph-up',
        'url': 'core:dashboard',
    },
    {
        'name': 'Análise Leads',
        'icon': 'bi-kanban',
        'url': 'atendimentos:kanban',
    },
    {
        'name': 'Perfil',
        'icon': 'bi-person-circle',
        'url': 'perfis:perfil',
    },
    {
        'name': 'Usuários',
        'icon': 'bi-people',
        'url': 'convites:gerenciar_usuarios',
        'role': 'admin',
    },
]


def build_menu(sessao, current_url_name=None):
    """Itens do menu visíveis para a sessão. Itens com 'role' exigem o papel."""
    if sessao is None:
        return []

    menu = []
    for item in MENU_ITEMS:
        role = item.get('role')
        if role and not sessao.has_role(role):
            continue
        menu.append({**item, 'active': item['url'] == current_url_name})
    return menu
